"""
URL helpers: path templates, query attachment and base-address resolution.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from enum import Enum
from typing import Any
from urllib.parse import quote, urlsplit

from .exceptions import PathBuildError

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")
# Characters left alone inside a path segment (RFC 3986 pchar minus "/").
_SEGMENT_SAFE = "-._~!$&'()*+,;=:@"


def template_fields(template: str) -> tuple[str, ...]:
    """Return the field names referenced by `template`, in order of appearance."""
    return tuple(dict.fromkeys(_PLACEHOLDER.findall(template)))


def _path_value(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_path(template: str, values: Mapping[str, Any]) -> str:
    """
    Substitute `{name}` placeholders in `template` with values from `values`.

    The rendered path is percent-encoded one `/`-separated segment at a time.

    Raises:
        PathBuildError: If a placeholder names a value that isn't present
            or whose value is `None`.
    """

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in values:
            raise PathBuildError(f"Path template {template!r} references unknown field {name!r}", field=name)
        if values[name] is None:
            raise PathBuildError(f"Path field {name!r} is None; {template!r} needs a value", field=name)
        return _path_value(values[name])

    rendered = _PLACEHOLDER.sub(_substitute, template)
    return "/".join(quote(segment, safe=_SEGMENT_SAFE) for segment in rendered.split("/"))


def with_query(path: str, query: str) -> str:
    """Attach an encoded query string; an empty query leaves the path untouched."""
    if not query:
        return path
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{query}"


def is_absolute(url: str) -> bool:
    parts = urlsplit(url)
    return bool(parts.scheme and parts.netloc)


def join_url(base_url: str, url: str) -> str:
    """
    Resolve `url` against `base_url`.

    Absolute URLs are returned unchanged. Relative URLs are appended to the
    base address as path segments, so a base path prefix is always kept.
    """
    if is_absolute(url):
        return url
    if not base_url:
        return url
    return f"{base_url.rstrip('/')}/{url.lstrip('/')}"
