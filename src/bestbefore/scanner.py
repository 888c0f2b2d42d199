# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Static discovery of inline policies in Python source.

Source files are parsed with ``ast``, never imported, so expired code can
be reported without executing it. Recognized markers:

- ``@bestbefore(...)`` / ``@<anything>.bestbefore(...)`` on functions,
  async functions and classes
- ``bestbefore_module(__name__, ...)`` calls (target is the module name)
- Either of the above under a ``from bestbefore import ... as ...`` alias

Only string literals are read as argument values. Any other expression
is passed through as a SourceExpression, which the policy builder
rejects with a precise diagnosis.
"""

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from bestbefore.config import ScanSettings, should_scan_file
from bestbefore.errors import SourceSpan
from bestbefore.policy import PolicyArgument

logger = logging.getLogger(__name__)

PACKAGE_NAME = "bestbefore"
DECORATOR_NAME = "bestbefore"
MODULE_CALL_NAME = "bestbefore_module"


@dataclass(frozen=True)
class SourceExpression:
    """A non-literal argument, kept as its source text for diagnostics."""

    text: str

    def __repr__(self) -> str:
        return self.text


@dataclass
class DiscoveredPolicy:
    """A policy declaration found in source or in the manifest.

    Attributes:
        target: Descriptive name of the declaration
        arguments: Raw arguments in declaration order
        span: Location of the declaration
        origin: "inline" or "manifest"
    """

    target: str
    arguments: List[PolicyArgument] = field(default_factory=list)
    span: Optional[SourceSpan] = None
    origin: str = "inline"


def module_name_for(path: Union[str, Path], root: Optional[Union[str, Path]] = None) -> str:
    """Dotted module name for a source file.

    A leading "src" directory is dropped and ``__init__.py`` names its
    package.
    """
    path = Path(path)
    if root is not None:
        try:
            path = path.resolve().relative_to(Path(root).resolve())
        except ValueError:
            pass

    parts = list(path.with_suffix("").parts)
    if parts and parts[0] == "src":
        parts = parts[1:]
    if parts and parts[-1] == "__init__":
        parts = parts[:-1]
    parts = [p for p in parts if p not in ("", ".", "/")]
    return ".".join(parts) or path.stem


def scan_source(
    source: str, path: str = "<string>", module_name: Optional[str] = None
) -> List[DiscoveredPolicy]:
    """Find policy declarations in Python source text.

    Args:
        source: Python source code
        path: Path used in spans
        module_name: Target for bestbefore_module calls; derived from path
            when not given

    Returns:
        Discovered policies in source order

    Raises:
        SyntaxError: If the source cannot be parsed
    """
    tree = ast.parse(source, filename=path)
    module_name = module_name or module_name_for(path)
    aliases = _import_aliases(tree)
    found: List[DiscoveredPolicy] = []

    for node in ast.walk(tree):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            target = f"class {node.name}" if isinstance(node, ast.ClassDef) else node.name
            for decorator in node.decorator_list:
                if _callee_name(decorator, aliases) != DECORATOR_NAME:
                    continue
                span = _span(decorator, path)
                if isinstance(decorator, ast.Call):
                    arguments = _call_arguments(decorator, path)
                else:
                    # Bare @bestbefore: no arguments at all
                    arguments = []
                found.append(DiscoveredPolicy(target=target, arguments=arguments, span=span))

        elif isinstance(node, ast.Call) and _callee_name(node.func, aliases) == MODULE_CALL_NAME:
            call = ast.Call(func=node.func, args=node.args[1:], keywords=node.keywords)
            ast.copy_location(call, node)
            found.append(
                DiscoveredPolicy(
                    target=module_name,
                    arguments=_call_arguments(call, path),
                    span=_span(node, path),
                )
            )

    found.sort(key=lambda p: (p.span.line or 0, p.span.column or 0) if p.span else (0, 0))
    return found


def scan_file(path: Union[str, Path], root: Optional[Union[str, Path]] = None) -> List[DiscoveredPolicy]:
    """Read and scan one file. See scan_source."""
    path = Path(path)
    source = path.read_text(encoding="utf-8")
    display = str(path.relative_to(root)) if root is not None and _is_relative_to(path, root) else str(path)
    found = scan_source(source, display, module_name_for(path, root))
    logger.debug("file_scanned", extra={"path": display, "policies": len(found)})
    return found


def iter_source_files(root: Union[str, Path], settings: ScanSettings) -> Iterator[Path]:
    """Yield files under root accepted by the include/exclude patterns.

    A root that is itself a file is yielded as-is.
    """
    root = Path(root)
    if root.is_file():
        yield root
        return

    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        relative = path.relative_to(root).as_posix()
        if should_scan_file(relative, settings):
            yield path


def _import_aliases(tree: ast.AST) -> Dict[str, str]:
    """Local names bound to our markers by ``from bestbefore... import X as Y``."""
    aliases = {}
    for node in ast.walk(tree):
        if not isinstance(node, ast.ImportFrom) or node.level:
            continue
        module = node.module or ""
        if module != PACKAGE_NAME and not module.startswith(PACKAGE_NAME + "."):
            continue
        for alias in node.names:
            if alias.asname and alias.name in (DECORATOR_NAME, MODULE_CALL_NAME):
                aliases[alias.asname] = alias.name
    return aliases


def _callee_name(node: ast.expr, aliases: Optional[Dict[str, str]] = None) -> Optional[str]:
    if isinstance(node, ast.Call):
        node = node.func
    if isinstance(node, ast.Name):
        return (aliases or {}).get(node.id, node.id)
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def _call_arguments(call: ast.Call, path: str) -> List[PolicyArgument]:
    arguments = []
    for arg in call.args:
        arguments.append(PolicyArgument(name=None, value=_literal(arg), span=_span(arg, path)))
    for keyword in call.keywords:
        # **kwargs unpacking has no name; it cannot be checked statically
        name = keyword.arg if keyword.arg is not None else f"**{ast.unparse(keyword.value)}"
        arguments.append(
            PolicyArgument(name=name, value=_literal(keyword.value), span=_span(keyword, path))
        )
    return arguments


def _literal(node: ast.expr):
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    return SourceExpression(ast.unparse(node))


def _span(node: ast.AST, path: str) -> SourceSpan:
    line = getattr(node, "lineno", None)
    col = getattr(node, "col_offset", None)
    return SourceSpan(path=path, line=line, column=col + 1 if col is not None else None)


def _is_relative_to(path: Path, root: Union[str, Path]) -> bool:
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False
