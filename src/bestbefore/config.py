# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Check-pass configuration from .bestbefore.yaml.

This module provides:
- BestBeforeConfig / ScanSettings / CheckSettings / PolicyEntry models
- load_config() to parse .bestbefore.yaml
- should_scan_file() to apply include/exclude patterns

Example .bestbefore.yaml:

    scan:
      include: ["src/**/*.py"]
      exclude: ["**/migrations/**"]
    check:
      strict: false
      env_var: BESTBEFORE_DATE
    policies:
      - target: legacy_billing_api
        date: "03.2024"
        expires: "12.2025"
        message: "Use billing.v2"

A missing file yields defaults. A file that exists but cannot be parsed or
validated raises ConfigurationError: a gate must never silently pass.
"""

import logging
from fnmatch import fnmatch
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from bestbefore.clock import DEFAULT_ENV_VAR
from bestbefore.errors import ConfigurationError, SourceSpan
from bestbefore.policy import PolicyArgument, arguments_from_mapping

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".bestbefore.yaml"

# Default patterns for scanning
DEFAULT_INCLUDE_PATTERNS = [
    "**/*.py",
]

DEFAULT_EXCLUDE_PATTERNS = [
    "**/.git/**",
    "**/.venv/**",
    "**/venv/**",
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/__pycache__/**",
    "**/.tox/**",
]


class ScanSettings(BaseModel):
    """Which files the source scanner visits.

    Attributes:
        include: Glob patterns for files to scan
        exclude: Glob patterns for files to skip (checked first)
    """

    model_config = ConfigDict(extra="forbid")

    include: List[str] = Field(default_factory=lambda: DEFAULT_INCLUDE_PATTERNS.copy())
    exclude: List[str] = Field(default_factory=lambda: DEFAULT_EXCLUDE_PATTERNS.copy())

    @field_validator("include", "exclude")
    @classmethod
    def validate_patterns(cls, v: List[str]) -> List[str]:
        """Reject empty patterns."""
        if any(not p.strip() for p in v):
            raise ValueError("patterns must be non-empty strings")
        return v


class CheckSettings(BaseModel):
    """How verdicts map to the exit status.

    Attributes:
        strict: Treat WARN verdicts as failures
        env_var: Name of the current-date override variable
    """

    model_config = ConfigDict(extra="forbid")

    strict: bool = False
    env_var: str = DEFAULT_ENV_VAR


class PolicyEntry(BaseModel):
    """A policy declared in the manifest rather than inline.

    ``target`` and ``date`` (the positional warning date) are fixed fields.
    Every other key is a named policy argument, kept in declaration order
    so that unknown keys are diagnosed by the policy builder.
    """

    model_config = ConfigDict(extra="allow")

    target: str = Field(..., min_length=1, description="Name of the declaration")
    # Any, so unquoted YAML dates reach the policy builder and get a date diagnosis
    date: Optional[Any] = Field(default=None, description="Warning date (MM.YYYY)")

    def arguments(self, span: Optional[SourceSpan] = None) -> List[PolicyArgument]:
        named = list((self.model_extra or {}).items())
        return arguments_from_mapping(self.date, named, span)


class BestBeforeConfig(BaseModel):
    """Top-level .bestbefore.yaml model."""

    model_config = ConfigDict(extra="forbid")

    scan: ScanSettings = Field(default_factory=ScanSettings)
    check: CheckSettings = Field(default_factory=CheckSettings)
    policies: List[PolicyEntry] = Field(default_factory=list)

    # Set by load_config, not read from YAML
    source_path: Optional[str] = Field(default=None, exclude=True)


def find_config(start: Union[str, Path]) -> Optional[Path]:
    """Locate .bestbefore.yaml in start or its parents.

    Args:
        start: File or directory to begin searching from

    Returns:
        Path to the config file, or None if none is found
    """
    current = Path(start).resolve()
    if current.is_file():
        current = current.parent

    for directory in [current, *current.parents]:
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Optional[Union[str, Path]]) -> BestBeforeConfig:
    """Load and validate a bestbefore configuration file.

    Args:
        config_path: Path to .bestbefore.yaml, or None for defaults

    Returns:
        BestBeforeConfig with settings from the file or defaults

    Raises:
        ConfigurationError: If the file cannot be read, parsed or validated
    """
    if config_path is None:
        return BestBeforeConfig()

    path = Path(config_path)
    if not path.exists():
        logger.debug("config_missing", extra={"path": str(path)})
        return BestBeforeConfig()

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        raise ConfigurationError(f"{path}: cannot read configuration: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: configuration must be a mapping")

    try:
        config = BestBeforeConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"{path}: invalid configuration:\n{e}") from e

    config.source_path = str(path)
    logger.info(
        "config_loaded",
        extra={
            "path": str(path),
            "policies": len(config.policies),
            "strict": config.check.strict,
        },
    )
    return config


def should_scan_file(file_path: str, settings: ScanSettings) -> bool:
    """Determine if a file should be scanned.

    Args:
        file_path: Path relative to the scan root
        settings: Include/exclude patterns

    Returns:
        True if the file should be scanned
    """
    file_path = file_path.replace("\\", "/")

    for pattern in settings.exclude:
        if _matches_pattern(file_path, pattern):
            return False

    for pattern in settings.include:
        if _matches_pattern(file_path, pattern):
            return True

    return False


def _matches_pattern(file_path: str, pattern: str) -> bool:
    """Check if a file path matches a glob pattern.

    Handles ** for recursive directory matching by comparing path
    components, without regex.

    Args:
        file_path: Path to check
        pattern: Glob pattern (supports *, **, ?)

    Returns:
        True if the path matches the pattern
    """
    file_path = file_path.replace("\\", "/")
    pattern = pattern.replace("\\", "/")
    path_parts = file_path.split("/")

    if "**" not in pattern:
        return fnmatch(file_path, pattern)

    # "**/dir/**": dir (or a dir sequence) appears anywhere in the path
    if pattern.startswith("**/") and pattern.endswith("/**"):
        middle_parts = pattern[3:-3].split("/")
        # The final component is the file itself, not a directory
        dirs = path_parts[:-1]
        for i in range(len(dirs) - len(middle_parts) + 1):
            if all(fnmatch(dirs[i + j], m) for j, m in enumerate(middle_parts)):
                return True
        return False

    # "**/suffix": suffix matches the end of the path
    if pattern.startswith("**/"):
        return _fnmatch_parts(path_parts, pattern[3:].split("/"))

    # "prefix/**": path starts with prefix
    if pattern.endswith("/**"):
        prefix_parts = pattern[:-3].split("/")
        if len(path_parts) <= len(prefix_parts):
            return False
        return all(fnmatch(path_parts[i], p) for i, p in enumerate(prefix_parts))

    # "prefix/**/suffix"
    if "/**/" in pattern:
        prefix, suffix = pattern.split("/**/", 1)
        prefix_parts = prefix.split("/") if prefix else []
        if len(path_parts) < len(prefix_parts):
            return False
        if not all(fnmatch(path_parts[i], p) for i, p in enumerate(prefix_parts)):
            return False
        return _fnmatch_parts(path_parts[len(prefix_parts):], suffix.split("/"))

    return fnmatch(file_path, pattern)


def _fnmatch_parts(path_parts: list, pattern_parts: list) -> bool:
    """Check if pattern_parts matches the suffix of path_parts using fnmatch.

    Anchored to the END of the path, so "*.py" matches files, not
    directories named like "foo.py/".
    """
    if len(pattern_parts) > len(path_parts):
        return False

    start = len(path_parts) - len(pattern_parts)
    return all(fnmatch(path_parts[start + i], p) for i, p in enumerate(pattern_parts))
