# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Error taxonomy for bestbefore.

Two families that must never be confused:

- PolicyError and its subclasses: the policy itself is broken (bad date,
  unknown parameter, wrong ordering). Raised while the policy is built,
  never deferred to evaluation.
- CodeExpiredError: the policy works and its expiry has passed. This is
  the runtime rendering of a Fail verdict.

ConfigurationError covers an unusable .bestbefore.yaml.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SourceSpan:
    """Location of a policy declaration, when known.

    Attributes:
        path: Source file path
        line: 1-based line number
        column: 1-based column number
    """

    path: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:
        parts = [self.path or "<unknown>"]
        if self.line is not None:
            parts.append(str(self.line))
            if self.column is not None:
                parts.append(str(self.column))
        return ":".join(parts)


class BestBeforeError(Exception):
    """Base exception for bestbefore errors."""

    pass


class PolicyError(BestBeforeError):
    """A policy declaration cannot be built.

    Attributes:
        detail: Human-readable diagnosis without location prefix
        span: Where the policy was declared, if known
    """

    def __init__(self, detail: str, span: Optional[SourceSpan] = None):
        self.detail = detail
        self.span = span
        super().__init__(str(self))

    def with_span(self, span: Optional[SourceSpan]) -> "PolicyError":
        """Attach a span if this error does not carry one yet."""
        if self.span is None and span is not None:
            self.span = span
            self.args = (str(self),)
        return self

    def __str__(self) -> str:
        if self.span is None:
            return self.detail
        return f"{self.span}: {self.detail}"


class MalformedDateError(PolicyError):
    """A date token is not a valid MM.YYYY value."""

    def __init__(self, detail: str, text: object = None, span: Optional[SourceSpan] = None):
        self.text = text
        super().__init__(detail, span)


class MissingParametersError(PolicyError):
    """Neither a warning date nor an expires parameter was supplied."""

    pass


class UnknownParameterError(PolicyError):
    """A named argument is outside the accepted set."""

    def __init__(self, name: str, span: Optional[SourceSpan] = None):
        self.name = name
        super().__init__(
            f"Unknown parameter '{name}', expected 'expires' or 'message'", span
        )


class DuplicateOrMisplacedArgumentError(PolicyError):
    """A positional date after named arguments, or a repeated argument."""

    pass


class InvalidDateOrderingError(PolicyError):
    """The expiry date is not strictly after the warning date."""

    pass


class MalformedArgumentError(PolicyError):
    """An argument value has the wrong type (e.g. a non-string message)."""

    pass


class CodeExpiredError(BestBeforeError):
    """Raised when decorated code is used past its expiry date.

    Attributes:
        target: Identifier of the expired declaration
    """

    def __init__(self, message: str, target: Optional[str] = None):
        self.target = target
        super().__init__(message)


class ConfigurationError(BestBeforeError):
    """The .bestbefore.yaml file cannot be read or validated."""

    pass
