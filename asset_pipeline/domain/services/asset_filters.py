"""Asset filter adapters."""
import fnmatch
import inspect
import os
import re
from typing import Any, Callable

from asset_pipeline.infra.common.errors import ArgumentError


AssetFilter = Callable[[str, str], bool]
"""Predicate over (logical path, absolute path)."""

GLOB_CHARACTERS = frozenset("*?[")


def exact_filter(name: str) -> AssetFilter:
    """Match a logical path, or an absolute path when `name` is absolute."""
    if os.path.isabs(name):
        target = os.path.realpath(name)
        return lambda logical_path, path: path == target
    return lambda logical_path, path: logical_path == name


def glob_filter(pattern: str) -> AssetFilter:
    """Match logical paths against a shell-style pattern."""
    return lambda logical_path, path: fnmatch.fnmatchcase(logical_path, pattern)


def regex_filter(pattern: re.Pattern) -> AssetFilter:
    """Match logical paths containing a regular expression match."""
    return lambda logical_path, path: pattern.search(logical_path) is not None


def _positional_arity(function: Callable) -> int:
    try:
        parameters = inspect.signature(function).parameters.values()
    except (TypeError, ValueError):
        return 1
    arity = 0
    for parameter in parameters:
        if parameter.kind == inspect.Parameter.VAR_POSITIONAL:
            return 2
        if parameter.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            arity += 1
    return arity


def predicate_filter(function: Callable[..., Any]) -> AssetFilter:
    """Adapt a callable taking (logical_path) or (logical_path, absolute_path)."""
    if _positional_arity(function) >= 2:
        return lambda logical_path, path: bool(function(logical_path, path))
    return lambda logical_path, path: bool(function(logical_path))


def is_exact_name(pattern: Any) -> bool:
    """Check if a pattern names a single asset rather than a set of them."""
    return isinstance(pattern, (str, os.PathLike)) and not GLOB_CHARACTERS.intersection(os.fspath(pattern))


def build_filter(pattern: Any) -> AssetFilter:
    """
    Build a predicate from a find pattern.

    Args:
        pattern: Exact name, glob string, compiled regex or callable

    Returns:
        Predicate over (logical path, absolute path)

    Raises:
        ArgumentError: If the pattern type is not supported
    """
    if isinstance(pattern, re.Pattern):
        return regex_filter(pattern)
    if isinstance(pattern, (str, os.PathLike)):
        pattern = os.fspath(pattern)
        if GLOB_CHARACTERS.intersection(pattern):
            return glob_filter(pattern)
        return exact_filter(pattern)
    if callable(pattern):
        return predicate_filter(pattern)
    raise ArgumentError(f"Unsupported asset filter: {pattern!r}")
