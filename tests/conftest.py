# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Root pytest configuration with shared fixtures and markers.

This file is automatically loaded by pytest and provides:
- Custom markers for test categories
- Clock isolation: every test starts with a fresh ClockRegistry and no
  BESTBEFORE_DATE override
- Helpers for pinning the current month and building project trees
"""

import os
from unittest.mock import patch

import pytest

from bestbefore.clock import ClockRegistry, FixedDateProvider
from bestbefore.dates import CalendarMonth


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: Mark test as integration test (scans files, runs the CLI)",
    )
    config.addinivalue_line(
        "markers",
        "property: Mark test as checking an algebraic property over many values",
    )


# ============================================================================
# Shared Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_clock():
    """Fresh clock registry and no environment override for each test."""
    env = os.environ.copy()
    env.pop("BESTBEFORE_DATE", None)
    ClockRegistry.reset()
    with patch.dict(os.environ, env, clear=True):
        yield
    ClockRegistry.reset()


@pytest.fixture
def at_month():
    """Pin the process-wide current month.

    Usage:
        def test_x(at_month):
            at_month("04.2024")
    """

    def _pin(text: str) -> CalendarMonth:
        month = CalendarMonth.parse(text)
        ClockRegistry.get().set_provider(FixedDateProvider(month))
        return month

    return _pin


@pytest.fixture
def project_dir(tmp_path):
    """Create a small project tree with inline policies.

    Layout:
        src/pkg/__init__.py      module policy (warning only)
        src/pkg/legacy.py        function + class policies
        .venv/ignored.py         excluded by default patterns
    """
    pkg = tmp_path / "src" / "pkg"
    pkg.mkdir(parents=True)
    (pkg / "__init__.py").write_text(
        "from bestbefore import bestbefore_module\n"
        "\n"
        'bestbefore_module(__name__, "06.2023")\n'
    )
    (pkg / "legacy.py").write_text(
        "from bestbefore import bestbefore\n"
        "\n"
        "\n"
        '@bestbefore("03.2024")\n'
        "def future_warning():\n"
        "    pass\n"
        "\n"
        "\n"
        '@bestbefore("01.2026", expires="12.2030")\n'
        "def expired_function():\n"
        "    pass\n"
        "\n"
        "\n"
        '@bestbefore("01.2023", message="Use NewStructure instead")\n'
        "class OldStructure:\n"
        "    pass\n"
    )
    venv = tmp_path / ".venv"
    venv.mkdir()
    (venv / "ignored.py").write_text(
        "from bestbefore import bestbefore\n"
        "\n"
        '@bestbefore(expires="01.2000")\n'
        "def never_scanned():\n"
        "    pass\n"
    )
    return tmp_path
