"""bestbefore - Expiration dates for code.

Attach a warning date and an optional hard expiry to functions, classes
and modules. Stale code warns; expired code fails the build.

Usage:
    from bestbefore import bestbefore

    @bestbefore("03.2024", expires="12.2025", message="Use new_api() instead")
    def legacy_function():
        ...

    # Static check of a whole project
    bestbefore check src/

Set BESTBEFORE_DATE=MM.YYYY to evaluate against a fixed month.
"""

__version__ = "0.1.0"

from bestbefore.clock import (
    ClockRegistry,
    DateProvider,
    EnvironmentDateProvider,
    FixedDateProvider,
    SystemClockProvider,
)
from bestbefore.dates import CalendarMonth
from bestbefore.decorator import BestBeforeWarning, bestbefore, bestbefore_module
from bestbefore.engine import Verdict, VerdictKind, check, evaluate
from bestbefore.errors import (
    BestBeforeError,
    CodeExpiredError,
    ConfigurationError,
    DuplicateOrMisplacedArgumentError,
    InvalidDateOrderingError,
    MalformedArgumentError,
    MalformedDateError,
    MissingParametersError,
    PolicyError,
    SourceSpan,
    UnknownParameterError,
)
from bestbefore.policy import Policy, PolicyArgument, build_policy, policy_from_call

__all__ = [
    "__version__",
    # Dates and policies
    "CalendarMonth",
    "Policy",
    "PolicyArgument",
    "build_policy",
    "policy_from_call",
    # Decision engine
    "Verdict",
    "VerdictKind",
    "evaluate",
    "check",
    # Current date
    "DateProvider",
    "SystemClockProvider",
    "FixedDateProvider",
    "EnvironmentDateProvider",
    "ClockRegistry",
    # Runtime host
    "bestbefore",
    "bestbefore_module",
    "BestBeforeWarning",
    # Errors
    "BestBeforeError",
    "PolicyError",
    "MalformedDateError",
    "MissingParametersError",
    "UnknownParameterError",
    "DuplicateOrMisplacedArgumentError",
    "InvalidDateOrderingError",
    "MalformedArgumentError",
    "CodeExpiredError",
    "ConfigurationError",
    "SourceSpan",
]
