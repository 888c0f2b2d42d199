# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Check pass: evaluate every declared policy in a project.

Policies come from two places:
- Inline markers found by the source scanner
- The ``policies`` list of .bestbefore.yaml

Exit Codes:
    0: Nothing has expired (warnings allowed unless strict)
    1: At least one FAIL verdict (or WARN in strict mode)
    2: Broken policies, unreadable sources or configuration errors

Construction errors take precedence over FAIL verdicts: a broken policy
means the gate cannot be trusted, while FAIL means it is working.
"""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, TextIO, Union

from bestbefore.clock import DateProvider, EnvironmentDateProvider
from bestbefore.config import BestBeforeConfig
from bestbefore.dates import CalendarMonth
from bestbefore.engine import Verdict, VerdictKind, evaluate
from bestbefore.errors import PolicyError, SourceSpan
from bestbefore.policy import build_policy
from bestbefore.scanner import DiscoveredPolicy, iter_source_files, scan_file

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_EXPIRED = 1
EXIT_ERROR = 2


@dataclass
class CheckResult:
    """Outcome for one declared policy.

    Exactly one of ``verdict`` and ``error`` is set.
    """

    target: str
    span: Optional[SourceSpan] = None
    origin: str = "inline"
    verdict: Optional[Verdict] = None
    error: Optional[str] = None

    @property
    def severity(self) -> str:
        if self.error is not None:
            return "error"
        if self.verdict.is_fail:
            return "expired"
        if self.verdict.is_warn:
            return "warning"
        return "ok"

    def describe(self) -> str:
        """One diagnostic line: ``path:line:col: severity: message``."""
        location = str(self.span) if self.span else f"<{self.origin}>"
        if self.error is not None:
            return f"{location}: error: {self.error}"
        if self.verdict.is_pass:
            return f"{location}: ok: {self.target}"
        return f"{location}: {self.severity}: {self.verdict.message}"


@dataclass
class CheckReport:
    """Result of a check pass."""

    current_month: CalendarMonth
    results: List[CheckResult] = field(default_factory=list)
    scan_errors: List[str] = field(default_factory=list)
    files_scanned: int = 0

    def _with_kind(self, kind: VerdictKind) -> List[CheckResult]:
        return [r for r in self.results if r.verdict is not None and r.verdict.kind is kind]

    @property
    def failures(self) -> List[CheckResult]:
        return self._with_kind(VerdictKind.FAIL)

    @property
    def warnings(self) -> List[CheckResult]:
        return self._with_kind(VerdictKind.WARN)

    @property
    def passes(self) -> List[CheckResult]:
        return self._with_kind(VerdictKind.PASS)

    @property
    def errors(self) -> List[CheckResult]:
        return [r for r in self.results if r.error is not None]

    @property
    def passed(self) -> bool:
        """No errors and nothing expired."""
        return not (self.errors or self.scan_errors or self.failures)

    def exit_code(self, strict: bool = False) -> int:
        """Process exit status for this report.

        Args:
            strict: Treat WARN verdicts as failures
        """
        if self.errors or self.scan_errors:
            return EXIT_ERROR
        if self.failures:
            return EXIT_EXPIRED
        if strict and self.warnings:
            return EXIT_EXPIRED
        return EXIT_OK


def evaluate_discovered(
    discovered: DiscoveredPolicy, today: CalendarMonth
) -> CheckResult:
    """Build and evaluate one discovered policy.

    Construction errors are captured on the result; they are never
    downgraded to a warning.
    """
    result = CheckResult(target=discovered.target, span=discovered.span, origin=discovered.origin)
    try:
        policy = build_policy(discovered.arguments, discovered.span)
    except PolicyError as e:
        result.error = e.detail
        if e.span is not None:
            result.span = e.span
        logger.warning(
            "policy_invalid",
            extra={"target": discovered.target, "span": str(result.span), "error": e.detail},
        )
        return result

    result.verdict = evaluate(policy, discovered.target, today)
    return result


def manifest_policies(config: BestBeforeConfig) -> List[DiscoveredPolicy]:
    """Policies declared in the configuration file."""
    discovered = []
    for index, entry in enumerate(config.policies):
        span = SourceSpan(path=config.source_path or "<config>", line=None)
        discovered.append(
            DiscoveredPolicy(
                target=entry.target,
                arguments=entry.arguments(span),
                span=span,
                origin=f"manifest[{index}]",
            )
        )
    return discovered


def run_check(
    paths: Iterable[Union[str, Path]],
    config: Optional[BestBeforeConfig] = None,
    provider: Optional[DateProvider] = None,
    today: Optional[CalendarMonth] = None,
) -> CheckReport:
    """Scan paths, evaluate inline and manifest policies.

    Args:
        paths: Files or directories to scan
        config: Loaded configuration (defaults if None)
        provider: Current-date provider, used when ``today`` is not given
        today: Explicit month to evaluate against

    Returns:
        CheckReport with one result per declared policy
    """
    config = config or BestBeforeConfig()
    if today is None:
        if provider is None:
            provider = EnvironmentDateProvider(config.check.env_var)
        today = provider.current_month()

    report = CheckReport(current_month=today)
    discovered: List[DiscoveredPolicy] = []

    for root in paths:
        root = Path(root)
        if not root.exists():
            report.scan_errors.append(f"{root}: no such file or directory")
            continue
        scan_root = root if root.is_dir() else root.parent
        for path in iter_source_files(root, config.scan):
            report.files_scanned += 1
            try:
                discovered.extend(scan_file(path, scan_root))
            except SyntaxError as e:
                report.scan_errors.append(f"{path}:{e.lineno or 0}: syntax error: {e.msg}")
                logger.warning("scan_syntax_error", extra={"path": str(path), "line": e.lineno})
            except (OSError, UnicodeDecodeError) as e:
                report.scan_errors.append(f"{path}: cannot read: {e}")
                logger.warning("scan_read_error", extra={"path": str(path), "error": str(e)})

    discovered.extend(manifest_policies(config))

    for item in discovered:
        report.results.append(evaluate_discovered(item, today))

    logger.info(
        "check_completed",
        extra={
            "current_month": today.format(),
            "files_scanned": report.files_scanned,
            "policies": len(report.results),
            "failures": len(report.failures),
            "warnings": len(report.warnings),
            "errors": len(report.errors) + len(report.scan_errors),
        },
    )
    return report


def print_report(report: CheckReport, verbose: bool = False, file: Optional[TextIO] = None) -> None:
    """Print check diagnostics followed by a summary."""
    out = file or sys.stdout

    for error in report.scan_errors:
        print(f"{error}", file=out)
    for result in report.errors:
        print(result.describe(), file=out)
    for result in report.failures:
        print(result.describe(), file=out)
    for result in report.warnings:
        print(result.describe(), file=out)
    if verbose:
        for result in report.passes:
            print(result.describe(), file=out)

    print("\n" + "=" * 60, file=out)
    print(f"BESTBEFORE CHECK ({report.current_month})", file=out)
    print("=" * 60, file=out)
    print(f"  Files scanned:  {report.files_scanned}", file=out)
    print(f"  Policies:       {len(report.results)}", file=out)
    print(f"  Expired:        {len(report.failures)}", file=out)
    print(f"  Warnings:       {len(report.warnings)}", file=out)
    print(f"  Errors:         {len(report.errors) + len(report.scan_errors)}", file=out)
    print(f"  Status:         {'PASS' if report.passed else 'FAIL'}", file=out)
    print("-" * 60, file=out)
