# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Expiration policies and their construction from raw arguments.

A policy is declared as an ordered argument list:

    "03.2024"                       # positional warning date (optional, first)
    expires="12.2025"               # hard expiry (optional)
    message="Use new_api() instead" # custom message (optional)

Argument rules (strict):
- At most one positional date, and it must come before any named argument
- Named arguments from {expires, message}, each at most once
- At least one of the positional date or expires

If only expires is given, the warning date defaults to the expiry date, so
the policy has no advance warning and a hard cutoff at expiry.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from bestbefore.dates import CalendarMonth
from bestbefore.errors import (
    DuplicateOrMisplacedArgumentError,
    InvalidDateOrderingError,
    MalformedArgumentError,
    MalformedDateError,
    MissingParametersError,
    PolicyError,
    SourceSpan,
    UnknownParameterError,
)

EXPIRES = "expires"
MESSAGE = "message"
KNOWN_PARAMETERS = (EXPIRES, MESSAGE)


@dataclass(frozen=True)
class PolicyArgument:
    """One raw policy argument.

    Attributes:
        name: Parameter name, or None for the positional warning date
        value: Raw value as written by the declaration
        span: Location of this argument, if known
    """

    name: Optional[str]
    value: Any
    span: Optional[SourceSpan] = None

    @property
    def is_positional(self) -> bool:
        return self.name is None


@dataclass(frozen=True)
class Policy:
    """Validated expiration policy.

    Attributes:
        warning_date: Month after which the target is stale
        expiry_date: Month after which the target must be removed
        message: Custom text used instead of the default messages
        implicit_warning: True when warning_date was defaulted from expiry_date
    """

    warning_date: CalendarMonth
    expiry_date: Optional[CalendarMonth] = None
    message: Optional[str] = None
    implicit_warning: bool = False

    def __post_init__(self):
        if self.expiry_date is None:
            if self.implicit_warning:
                raise MissingParametersError(
                    "An implicit warning date requires an expires parameter"
                )
            return

        if self.implicit_warning:
            if self.expiry_date != self.warning_date:
                raise InvalidDateOrderingError(
                    "An implicit warning date must equal the expiration date"
                )
            return

        if self.expiry_date <= self.warning_date:
            raise InvalidDateOrderingError(
                f"Invalid date: expiration date ({self.expiry_date}) must be after "
                f"warning date ({self.warning_date})"
            )

    @classmethod
    def expires_only(
        cls, expiry_date: CalendarMonth, message: Optional[str] = None
    ) -> "Policy":
        """Policy with a hard cutoff and no advance warning."""
        return cls(
            warning_date=expiry_date,
            expiry_date=expiry_date,
            message=message,
            implicit_warning=True,
        )


def build_policy(
    arguments: Sequence[PolicyArgument], span: Optional[SourceSpan] = None
) -> Policy:
    """Build a validated Policy from an ordered argument list.

    Args:
        arguments: Raw arguments in declaration order
        span: Location of the whole declaration, used when an argument has
            no span of its own

    Returns:
        Validated Policy

    Raises:
        MissingParametersError: No warning date and no expires parameter
        MalformedDateError: A date token cannot be parsed
        UnknownParameterError: A named argument outside {expires, message}
        DuplicateOrMisplacedArgumentError: Positional after named, a second
            positional, or a repeated named argument
        InvalidDateOrderingError: expires is not after an explicit warning date
        MalformedArgumentError: message is not a string
    """
    if not arguments:
        raise MissingParametersError(
            "Missing parameters. Expected either warning date or expires parameter",
            span,
        )

    warning_date: Optional[CalendarMonth] = None
    expiry_date: Optional[CalendarMonth] = None
    message: Optional[str] = None
    seen_names: set = set()
    seen_positional = False

    for argument in arguments:
        where = argument.span or span

        if argument.is_positional:
            if seen_names:
                raise DuplicateOrMisplacedArgumentError(
                    "Positional warning date must come before named arguments", where
                )
            if seen_positional:
                raise DuplicateOrMisplacedArgumentError(
                    "Only one positional warning date is allowed", where
                )
            seen_positional = True
            warning_date = _parse_date(argument.value, where)
            continue

        if argument.name not in KNOWN_PARAMETERS:
            raise UnknownParameterError(str(argument.name), where)
        if argument.name in seen_names:
            raise DuplicateOrMisplacedArgumentError(
                f"Duplicate parameter '{argument.name}'", where
            )
        seen_names.add(argument.name)

        if argument.name == EXPIRES:
            expiry_date = _parse_date(argument.value, where)
        else:
            if not isinstance(argument.value, str):
                raise MalformedArgumentError(
                    f"Invalid message: expected a string, got {type(argument.value).__name__}",
                    where,
                )
            message = argument.value

    try:
        if warning_date is None:
            if expiry_date is None:
                raise MissingParametersError(
                    "Missing parameters. You must provide either a warning date "
                    "or an expires parameter"
                )
            return Policy.expires_only(expiry_date, message)

        return Policy(warning_date=warning_date, expiry_date=expiry_date, message=message)
    except PolicyError as e:
        raise e.with_span(span)


def policy_from_call(*args: Any, **kwargs: Any) -> Policy:
    """Build a Policy from Python call arguments.

    Example:
        >>> policy_from_call("01.2023", expires="12.2023")
    """
    arguments = [PolicyArgument(name=None, value=value) for value in args]
    arguments.extend(PolicyArgument(name=name, value=value) for name, value in kwargs.items())
    return build_policy(arguments)


def arguments_from_mapping(
    date: Optional[str], named: Iterable[tuple], span: Optional[SourceSpan] = None
) -> list:
    """Turn a positional date plus (name, value) pairs into PolicyArguments."""
    arguments = []
    if date is not None:
        arguments.append(PolicyArgument(name=None, value=date, span=span))
    arguments.extend(PolicyArgument(name=name, value=value, span=span) for name, value in named)
    return arguments


def _parse_date(value: Any, span: Optional[SourceSpan]) -> CalendarMonth:
    try:
        return CalendarMonth.parse(value)
    except MalformedDateError as e:
        raise e.with_span(span)
