# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the runtime decorator host.

PASS returns the object untouched, WARN attaches a deprecation marker and
warns on use, FAIL raises CodeExpiredError when the decorator runs.
"""

import asyncio
import sys
import types
import warnings

import pytest

from bestbefore.decorator import (
    BestBeforeWarning,
    bestbefore,
    bestbefore_module,
    target_name,
)
from bestbefore.errors import (
    CodeExpiredError,
    InvalidDateOrderingError,
    MalformedDateError,
    PolicyError,
    UnknownParameterError,
)


class TestTargetName:
    """Tests for target identifiers."""

    def test_function(self):
        def legacy_function():
            pass

        assert target_name(legacy_function) == "legacy_function"

    def test_class(self):
        class OldStructure:
            pass

        assert target_name(OldStructure) == "class OldStructure"

    def test_module(self):
        assert target_name(types.ModuleType("legacy_module")) == "legacy_module"

    def test_staticmethod_and_classmethod_use_function_name(self):
        def legacy_helper():
            pass

        assert target_name(staticmethod(legacy_helper)) == "legacy_helper"
        assert target_name(classmethod(legacy_helper)) == "legacy_helper"

    def test_other_objects(self):
        assert target_name(property(lambda self: 1)) == "code block"


class TestPass:
    """Before the warning date nothing changes."""

    def test_function_returned_unchanged(self, at_month):
        at_month("02.2024")

        def legacy_function():
            return 42

        decorated = bestbefore("03.2024")(legacy_function)

        assert decorated is legacy_function
        assert not hasattr(decorated, "__deprecated__")

    def test_no_warning_on_call(self, at_month):
        at_month("03.2024")

        @bestbefore("03.2024")
        def legacy_function():
            return 42

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert legacy_function() == 42


class TestWarn:
    """Past the warning date the target is marked and warns on use."""

    def test_function_warns_on_call(self, at_month):
        at_month("04.2024")

        @bestbefore("03.2024")
        def legacy_function(x):
            return x * 2

        with pytest.warns(BestBeforeWarning, match="past warning date") as record:
            assert legacy_function(21) == 42

        assert "legacy_function" in str(record[0].message)
        assert "03.2024" in str(record[0].message)

    def test_warning_is_deprecation_warning(self):
        assert issubclass(BestBeforeWarning, DeprecationWarning)

    def test_deprecated_marker_set(self, at_month):
        at_month("04.2024")

        @bestbefore("03.2024", message="Please use new_api() instead")
        def legacy_function():
            pass

        assert legacy_function.__deprecated__ == "Please use new_api() instead"

    def test_wraps_preserves_metadata(self, at_month):
        at_month("04.2024")

        @bestbefore("03.2024")
        def legacy_function():
            """Original docstring."""

        assert legacy_function.__name__ == "legacy_function"
        assert legacy_function.__doc__ == "Original docstring."
        assert legacy_function.__wrapped__ is not None

    def test_async_function_warns_on_call(self, at_month):
        at_month("04.2024")

        @bestbefore("03.2024")
        async def legacy_coroutine():
            return "done"

        with pytest.warns(BestBeforeWarning):
            assert asyncio.run(legacy_coroutine()) == "done"

    def test_class_warns_on_instantiation(self, at_month):
        at_month("02.2023")

        @bestbefore("01.2023")
        class OldStructure:
            def __init__(self, field):
                self.field = field

        with pytest.warns(BestBeforeWarning, match="class OldStructure"):
            old = OldStructure("test")

        assert old.field == "test"
        assert isinstance(old, OldStructure)
        assert "class OldStructure" in OldStructure.__deprecated__

    def test_class_without_init(self, at_month):
        at_month("02.2023")

        @bestbefore("01.2023")
        class OldStructure:
            pass

        with pytest.warns(BestBeforeWarning):
            OldStructure()

    def test_class_without_init_rejects_arguments(self, at_month):
        """Wrapping __init__ must not make extra constructor arguments legal."""
        at_month("02.2023")

        @bestbefore("01.2023")
        class OldStructure:
            pass

        with warnings.catch_warnings():
            warnings.simplefilter("ignore", BestBeforeWarning)
            with pytest.raises(TypeError):
                OldStructure(1, 2)

    def test_class_with_custom_new_keeps_arguments(self, at_month):
        at_month("02.2023")

        @bestbefore("01.2023")
        class OldStructure:
            def __new__(cls, value):
                instance = super().__new__(cls)
                instance.value = value
                return instance

        with pytest.warns(BestBeforeWarning):
            old = OldStructure(7)
        assert old.value == 7

    def test_staticmethod_warns_on_call(self, at_month):
        at_month("04.2024")

        class Helpers:
            @bestbefore("03.2024")
            @staticmethod
            def legacy_helper(x):
                return x + 1

        with pytest.warns(BestBeforeWarning) as record:
            assert Helpers.legacy_helper(1) == 2
        assert "legacy_helper" in str(record[0].message)

        with pytest.warns(BestBeforeWarning):
            assert Helpers().legacy_helper(1) == 2

    def test_classmethod_warns_on_call(self, at_month):
        at_month("04.2024")

        class Helpers:
            @bestbefore("03.2024")
            @classmethod
            def legacy_factory(cls):
                return cls

        with pytest.warns(BestBeforeWarning) as record:
            assert Helpers.legacy_factory() is Helpers
        assert "legacy_factory" in str(record[0].message)

        with pytest.warns(BestBeforeWarning):
            assert Helpers().legacy_factory() is Helpers

    def test_on_expiry_month_still_warns(self, at_month):
        at_month("12.2023")

        @bestbefore("01.2023", expires="12.2023")
        def very_old_function():
            return 1

        with pytest.warns(BestBeforeWarning):
            very_old_function()


class TestFail:
    """Past the expiry date the decorator refuses the declaration."""

    def test_expired_function_raises(self, at_month):
        at_month("01.2031")

        with pytest.raises(CodeExpiredError) as exc_info:

            @bestbefore("01.2026", expires="12.2030")
            def expired_function():
                pass

        assert "expired_function" in str(exc_info.value)
        assert "12.2030" in str(exc_info.value)
        assert exc_info.value.target == "expired_function"

    def test_expires_only(self, at_month):
        at_month("02.2028")

        with pytest.raises(CodeExpiredError, match="must be removed by 2028"):

            @bestbefore(expires="01.2028", message="This code must be removed by 2028")
            def expiration_with_custom_message():
                pass

    def test_expired_is_not_a_policy_error(self):
        assert not issubclass(CodeExpiredError, PolicyError)


class TestPolicyErrors:
    """Broken policies fail when the decorator is created, whatever the date."""

    def test_malformed_date(self, at_month):
        at_month("01.2020")
        with pytest.raises(MalformedDateError):
            bestbefore("13.2024")

    def test_unknown_parameter(self, at_month):
        at_month("01.2020")
        with pytest.raises(UnknownParameterError):
            bestbefore("01.2024", expiry="12.2024")

    def test_invalid_ordering(self, at_month):
        at_month("01.2020")
        with pytest.raises(InvalidDateOrderingError):
            bestbefore("06.2024", expires="06.2024")

    def test_bare_decorator_is_rejected(self, at_month):
        at_month("01.2020")
        with pytest.raises(MalformedDateError):

            @bestbefore
            def oops():
                pass


class TestModulePolicy:
    """Tests for bestbefore_module."""

    @pytest.fixture
    def legacy_module(self):
        module = types.ModuleType("legacy_module")
        sys.modules["legacy_module"] = module
        yield module
        sys.modules.pop("legacy_module", None)

    def test_pass(self, at_month, legacy_module):
        at_month("06.2023")
        assert bestbefore_module("legacy_module", "06.2023").is_pass
        assert not hasattr(legacy_module, "__deprecated__")

    def test_warn(self, at_month, legacy_module):
        at_month("07.2023")
        with pytest.warns(BestBeforeWarning, match="legacy_module"):
            verdict = bestbefore_module("legacy_module", "06.2023")

        assert verdict.is_warn
        assert legacy_module.__deprecated__ == verdict.message

    def test_fail(self, at_month, legacy_module):
        at_month("01.2024")
        with pytest.raises(CodeExpiredError, match="legacy_module"):
            bestbefore_module("legacy_module", "06.2023", expires="12.2023")
