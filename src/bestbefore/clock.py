# Copyright 2024-2025 Amiable Development
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Current-date providers and the process-wide clock registry.

The decision engine never reads the clock itself. It receives a
CalendarMonth, normally from a DateProvider:

- SystemClockProvider: local time truncated to the month
- FixedDateProvider: a constant month (tests, CLI --date)
- EnvironmentDateProvider: BESTBEFORE_DATE override, else a fallback

ClockRegistry holds the provider used when callers do not inject one.
It is resolved once per process, so the override cannot change in the
middle of a batch of evaluations.

Thread Safety:
- Registry initialization is thread-safe via class-level lock
- Providers are immutable after construction
"""

import logging
import os
import threading
from dataclasses import dataclass
from typing import ClassVar, Optional, Protocol, runtime_checkable

from bestbefore.dates import CalendarMonth
from bestbefore.errors import MalformedDateError

logger = logging.getLogger(__name__)

DEFAULT_ENV_VAR = "BESTBEFORE_DATE"


@runtime_checkable
class DateProvider(Protocol):
    """Source of the current month for policy evaluation."""

    def current_month(self) -> CalendarMonth:
        """
        Return the month policies are evaluated against.

        Returns:
            Current CalendarMonth.
        """
        ...


class SystemClockProvider:
    """Reads the local system clock on every call."""

    def current_month(self) -> CalendarMonth:
        return CalendarMonth.from_system_clock()

    def __repr__(self) -> str:
        return "SystemClockProvider()"


@dataclass(frozen=True)
class FixedDateProvider:
    """Always returns the same month."""

    month: CalendarMonth

    @classmethod
    def parse(cls, text: str) -> "FixedDateProvider":
        return cls(CalendarMonth.parse(text))

    def current_month(self) -> CalendarMonth:
        return self.month


class EnvironmentDateProvider:
    """
    Current-date override from an environment variable.

    The variable is read once, at construction. A set but malformed value,
    including an empty string, raises immediately; there is no silent
    fallback to the system clock, which would hide a misconfigured test run.

    Example:
        BESTBEFORE_DATE=04.2024 pytest
    """

    def __init__(
        self,
        variable: str = DEFAULT_ENV_VAR,
        fallback: Optional[DateProvider] = None,
    ):
        self.variable = variable
        self.fallback = fallback or SystemClockProvider()
        raw = os.environ.get(variable)
        self.override: Optional[CalendarMonth] = None

        if raw is not None:
            try:
                self.override = CalendarMonth.parse(raw)
            except MalformedDateError as e:
                logger.error(
                    "date_override_invalid",
                    extra={"variable": variable, "value": raw},
                )
                raise MalformedDateError(
                    f"Invalid {variable} override: {e.detail}", text=raw
                ) from e
            logger.debug(
                "date_override_active",
                extra={"variable": variable, "month": self.override.format()},
            )

    def current_month(self) -> CalendarMonth:
        if self.override is not None:
            return self.override
        return self.fallback.current_month()

    def __repr__(self) -> str:
        return f"EnvironmentDateProvider(variable={self.variable!r}, override={self.override})"


@dataclass
class ClockRegistry:
    """
    Process-wide holder for the default DateProvider.

    Usage:
        provider = ClockRegistry.get().provider
        today = provider.current_month()

    Usage (tests or embedding hosts):
        ClockRegistry.get().set_provider(FixedDateProvider(CalendarMonth(2024, 4)))

    Attributes:
        _provider: Lazily resolved provider; EnvironmentDateProvider by default
    """

    _provider: Optional[DateProvider] = None

    # Singleton management (ClassVars are not dataclass fields)
    _instance: ClassVar[Optional["ClockRegistry"]] = None
    _lock: ClassVar[threading.Lock]  # Initialized at module level

    @classmethod
    def get(cls) -> "ClockRegistry":
        """
        Get the singleton ClockRegistry instance.

        Thread-safe: Uses double-checked locking pattern.
        """
        if cls._instance is None:
            with cls._lock:
                # Double-check after acquiring lock
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """
        Reset the singleton instance (for testing only).

        Warning:
            The next lookup re-reads the environment override. Never call
            this in the middle of a batch of evaluations.
        """
        with cls._lock:
            cls._instance = None

    @property
    def provider(self) -> DateProvider:
        """The active provider, resolved from the environment on first use.

        Raises:
            MalformedDateError: If the environment override is malformed
        """
        if self._provider is None:
            with self._lock:
                if self._provider is None:
                    self._provider = EnvironmentDateProvider()
        return self._provider

    def set_provider(self, provider: DateProvider) -> None:
        self._provider = provider


# Initialize the class-level lock (must be done outside class body for ClassVar)
ClockRegistry._lock = threading.Lock()


def current_month(provider: Optional[DateProvider] = None) -> CalendarMonth:
    """Current month from the given provider, or from the registry default."""
    if provider is None:
        provider = ClockRegistry.get().provider
    return provider.current_month()
