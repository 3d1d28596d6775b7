"""
Utility Functions
Helper functions for request parameters and response headers.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .models import Param, RateLimitStatus

OAUTH_PARAM_PREFIX = "oauth_"


def _entries(opts: Any) -> List[tuple]:
    if opts is None or isinstance(opts, (str, bytes)):
        return []
    if isinstance(opts, Mapping):
        return list(opts.items())
    if not isinstance(opts, Iterable):
        return []
    return [tuple(entry) if isinstance(entry, Iterable) and not isinstance(entry, (str, bytes))
            else (entry,)
            for entry in opts]


def normalize_params(opts: Any,
                     log: Optional[Callable[[Any], None]] = None) -> List[Tuple[str, Any]]:
    """
    Turn method options into a list of (name, value) pairs.

    Args:
        opts: None, a mapping, or an iterable of (name, value) pairs
        log: Receives a message for every entry that is not a pair

    Returns:
        A new list of pairs; anything unrecognised gives an empty list
    """
    result = []
    for entry in _entries(opts):
        if len(entry) != 2:
            if log is not None:
                log(f"Invalid parameter. Expected 2 parts, got {len(entry)}: {entry!r}")
            continue
        result.append(entry)
    return result


def stringify(value: Any) -> str:
    """Render a parameter value the way the API expects it on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def is_oauth_param(param: Tuple[str, Any]) -> bool:
    return str(param[0]).startswith(OAUTH_PARAM_PREFIX)


def filter_oauth_params(params: Iterable[Tuple[str, Any]]) -> List[Param]:
    """Drop oauth_* parameters; bodies and query strings must not carry them."""
    return [(str(name), stringify(value)) for name, value in params
            if not is_oauth_param((name, value))]


def normalize_headers(headers: Any,
                      log: Optional[Callable[[Any], None]] = None) -> List[Param]:
    """
    Turn request headers into (name, value) pairs.

    Entries that are not exactly two parts long are dropped and reported
    through log.
    """
    result = []
    for header in _entries(headers):
        if len(header) != 2:
            if log is not None:
                log(f"Invalid HTTP request header. Expected 2 parts, got {len(header)}: {header!r}")
            continue
        result.append((str(header[0]), str(header[1])))
    return result


def parse_header_block(headers: Any) -> Dict[str, str]:
    """
    Read response headers into a dict keyed by lower-cased name.

    Args:
        headers: A mapping, a list of pairs, or a raw block with one
            'Name: value' header per line

    Returns:
        Header values by lower-cased name; later duplicates win
    """
    if headers is None:
        return {}
    if isinstance(headers, bytes):
        headers = headers.decode("latin-1")
    if isinstance(headers, str):
        pairs = []
        for line in headers.splitlines():
            name, sep, value = line.partition(":")
            if sep:
                pairs.append((name, value))
    elif hasattr(headers, "items"):
        pairs = list(headers.items())
    else:
        pairs = normalize_params(headers)
    return {str(name).strip().lower(): str(value).strip() for name, value in pairs}


def _to_number(value: str, kind: type):
    try:
        return kind(value)
    except (TypeError, ValueError):
        return None


def update_rate_limit(status: RateLimitStatus, headers: Any) -> RateLimitStatus:
    """
    Copy rate-limit and runtime headers into status.

    Absent or unparsable headers leave the previous value in place.
    """
    parsed = parse_header_block(headers)
    for header, attr, kind in (
        ("x-ratelimit-limit", "limit", int),
        ("x-ratelimit-remaining", "remaining", int),
        ("x-ratelimit-reset", "reset", int),
        ("x-runtime", "runtime", float),
    ):
        if header not in parsed:
            continue
        value = _to_number(parsed[header], kind)
        if value is not None:
            setattr(status, attr, value)
    return status
