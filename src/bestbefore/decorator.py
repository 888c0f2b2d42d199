# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Runtime host: attach expiration policies to Python declarations.

Policies are evaluated when the decorator runs, i.e. at import time, which
is the closest thing Python has to a declaration's build time.

Usage:
    from bestbefore import bestbefore, bestbefore_module

    # Warn when used after March 2024
    @bestbefore("03.2024")
    def legacy_function():
        ...

    # Warn after January 2023, refuse to import after December 2023
    @bestbefore("01.2023", expires="12.2023")
    class OldStructure:
        ...

    # Hard cutoff only
    @bestbefore(expires="01.2028", message="This code must be removed by 2028")
    def expires_only_function():
        ...

    # Whole module, at the top of the file
    bestbefore_module(__name__, "06.2023")

Verdict rendering:
- PASS: the object is returned unchanged
- WARN: __deprecated__ is set and use emits BestBeforeWarning
- FAIL: CodeExpiredError is raised from the decorator
"""

import functools
import inspect
import logging
import sys
import warnings
from typing import Any, Callable, TypeVar

from bestbefore.engine import FALLBACK_TARGET, Verdict, check
from bestbefore.errors import CodeExpiredError
from bestbefore.policy import policy_from_call

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BestBeforeWarning(DeprecationWarning):
    """Emitted when code past its warning date is used."""


warnings.simplefilter("default", BestBeforeWarning)


def target_name(obj: Any) -> str:
    """Descriptive identifier for a decorated object.

    Functions use their bare name, classes read "class <Name>",
    anything else is a generic "code block". Static and class methods are
    named after the function they wrap.
    """
    if isinstance(obj, (staticmethod, classmethod)):
        obj = obj.__func__
    if inspect.isclass(obj):
        return f"class {obj.__name__}"
    if inspect.isfunction(obj) or inspect.ismethod(obj) or inspect.isbuiltin(obj):
        return obj.__name__
    if inspect.ismodule(obj):
        return obj.__name__
    return FALLBACK_TARGET


def bestbefore(*args: Any, **kwargs: Any) -> Callable[[T], T]:
    """Decorator factory attaching an expiration policy.

    Args:
        *args: Optional positional warning date ("MM.YYYY")
        **kwargs: expires="MM.YYYY" and/or message="..."

    Returns:
        Decorator applying the policy to a function or class

    Raises:
        PolicyError: Immediately, if the arguments do not form a valid policy
        CodeExpiredError: When the decorator runs past the expiry date
    """
    policy = policy_from_call(*args, **kwargs)

    def decorator(obj: T) -> T:
        target = target_name(obj)
        verdict = check(policy, target)
        return _render(obj, target, verdict)

    return decorator


def bestbefore_module(module_name: str, *args: Any, **kwargs: Any) -> Verdict:
    """Apply an expiration policy to a whole module.

    Call at the top of the module with ``__name__``. A warning is emitted
    once at import; an expired module cannot be imported.

    Returns:
        The verdict, for callers that want to inspect it
    """
    policy = policy_from_call(*args, **kwargs)
    verdict = check(policy, module_name)

    if verdict.is_fail:
        logger.error("module_expired", extra={"target": module_name})
        raise CodeExpiredError(verdict.message, target=module_name)

    if verdict.is_warn:
        module = sys.modules.get(module_name)
        if module is not None:
            module.__deprecated__ = verdict.message
        warnings.warn(verdict.message, BestBeforeWarning, stacklevel=2)

    return verdict


def _render(obj: T, target: str, verdict: Verdict) -> T:
    if verdict.is_fail:
        logger.error("code_expired", extra={"target": target})
        raise CodeExpiredError(verdict.message, target=target)

    if verdict.is_pass:
        return obj

    logger.info("code_past_warning_date", extra={"target": target})
    if isinstance(obj, (staticmethod, classmethod)):
        # Wrap the inner function and keep the descriptor type
        return type(obj)(_warn_on_call(obj.__func__, verdict.message))
    if inspect.isclass(obj):
        return _warn_on_instantiation(obj, verdict.message)
    if callable(obj):
        return _warn_on_call(obj, verdict.message)

    # Nothing to hook into; leave the marker for introspection tools
    try:
        obj.__deprecated__ = verdict.message
    except (AttributeError, TypeError):
        logger.debug("deprecation_marker_unsupported", extra={"target": target})
    return obj


def _warn_on_call(func, message: str):
    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            warnings.warn(message, BestBeforeWarning, stacklevel=2)
            return await func(*args, **kwargs)

        async_wrapper.__deprecated__ = message
        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        warnings.warn(message, BestBeforeWarning, stacklevel=2)
        return func(*args, **kwargs)

    wrapper.__deprecated__ = message
    return wrapper


def _warn_on_instantiation(cls, message: str):
    original_init = cls.__init__
    # object.__init__ only tolerates extra arguments when a custom __new__ took them
    consumed_by_new = original_init is object.__init__ and cls.__new__ is not object.__new__

    @functools.wraps(original_init)
    def __init__(self, *args, **kwargs):
        warnings.warn(message, BestBeforeWarning, stacklevel=2)
        if consumed_by_new:
            original_init(self)
        else:
            original_init(self, *args, **kwargs)

    cls.__init__ = __init__
    cls.__deprecated__ = message
    return cls
