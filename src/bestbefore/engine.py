# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Decision engine: (Policy, target, current month) -> Verdict.

Evaluation order is fixed. Expiry is checked first because it is strictly
more severe than a warning and must win when both thresholds have passed:

1. expiry_date present and current > expiry_date -> FAIL
2. current > warning_date                        -> WARN
3. otherwise                                     -> PASS

Comparisons are strict, so the threshold month itself is still current.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from bestbefore.clock import DateProvider, current_month
from bestbefore.dates import CalendarMonth
from bestbefore.policy import Policy

logger = logging.getLogger(__name__)

FALLBACK_TARGET = "code block"

EXPIRED_TEMPLATE = "Code '{target}' has expired (after {date}): consider removing this code"
WARNING_TEMPLATE = (
    "Code '{target}' past warning date (after {date}): consider updating or removing this code"
)


class VerdictKind(str, Enum):
    """Outcome of evaluating a policy.

    - PASS: no action
    - WARN: flag the target with a visible, non-fatal notice
    - FAIL: abort the build for this target
    """

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass(frozen=True)
class Verdict:
    """Result of one evaluation. Warn and Fail always carry a message."""

    kind: VerdictKind
    message: Optional[str] = None

    @classmethod
    def passed(cls) -> "Verdict":
        return cls(VerdictKind.PASS)

    @classmethod
    def warn(cls, message: str) -> "Verdict":
        return cls(VerdictKind.WARN, message)

    @classmethod
    def fail(cls, message: str) -> "Verdict":
        return cls(VerdictKind.FAIL, message)

    @property
    def is_pass(self) -> bool:
        return self.kind is VerdictKind.PASS

    @property
    def is_warn(self) -> bool:
        return self.kind is VerdictKind.WARN

    @property
    def is_fail(self) -> bool:
        return self.kind is VerdictKind.FAIL


def expired_message(target: str, expiry_date: CalendarMonth) -> str:
    return EXPIRED_TEMPLATE.format(target=target, date=expiry_date.format())


def warning_message(target: str, warning_date: CalendarMonth) -> str:
    return WARNING_TEMPLATE.format(target=target, date=warning_date.format())


def evaluate(policy: Policy, target: Optional[str], today: CalendarMonth) -> Verdict:
    """Evaluate a policy against a given month.

    Pure function: no clock, no environment, no logging side effects
    beyond a debug record.

    Args:
        policy: Validated policy
        target: Descriptive name of the declaration; falls back to
            "code block" when empty
        today: Month to evaluate against

    Returns:
        Verdict for the target
    """
    target = target or FALLBACK_TARGET

    if policy.expiry_date is not None and today > policy.expiry_date:
        verdict = Verdict.fail(policy.message or expired_message(target, policy.expiry_date))
    elif today > policy.warning_date:
        verdict = Verdict.warn(policy.message or warning_message(target, policy.warning_date))
    else:
        verdict = Verdict.passed()

    logger.debug(
        "policy_evaluated",
        extra={
            "target": target,
            "verdict": verdict.kind.value,
            "current_month": today.format(),
            "warning_date": policy.warning_date.format(),
            "expiry_date": policy.expiry_date.format() if policy.expiry_date else None,
        },
    )
    return verdict


def check(
    policy: Policy, target: Optional[str], provider: Optional[DateProvider] = None
) -> Verdict:
    """Evaluate a policy against the provider's current month.

    Args:
        policy: Validated policy
        target: Descriptive name of the declaration
        provider: Date source; defaults to the process-wide ClockRegistry

    Returns:
        Verdict for the target
    """
    return evaluate(policy, target, current_month(provider))
