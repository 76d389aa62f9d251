"""Reading cookies from the ``Cookie`` request headers of a context."""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Any, Iterable, Iterator

_TOKEN_CHARS = frozenset("!#$%&'*+-.^_`|~" + string.digits + string.ascii_letters)
_TRIM = " \t\r\n"


@dataclass(frozen=True)
class Cookie:
    """A cookie sent by the client."""

    name: str
    value: str


class NoCookieError(LookupError):
    """Raised when a named cookie is not present in the request."""

    def __init__(self, name: str) -> None:
        super().__init__(f"http: named cookie not present: {name}")
        self.name = name


def _is_name_valid(name: str) -> bool:
    return bool(name) and all(ch in _TOKEN_CHARS for ch in name)


def _is_value_char(ch: str) -> bool:
    return "\x20" <= ch < "\x7f" and ch not in '";\\'


def _parse_value(raw: str) -> str | None:
    if len(raw) > 1 and raw[0] == '"' and raw[-1] == '"':
        raw = raw[1:-1]
    if all(_is_value_char(ch) for ch in raw):
        return raw
    return None


def _parse(lines: Iterable[str], name_filter: str = "") -> Iterator[Cookie]:
    for line in lines:
        for part in line.strip(_TRIM).split(";"):
            part = part.strip(_TRIM)
            if not part:
                continue
            name, _, raw = part.partition("=")
            name = name.strip(_TRIM)
            if not _is_name_valid(name):
                continue
            if name_filter and name != name_filter:
                continue
            value = _parse_value(raw)
            if value is None:
                continue
            yield Cookie(name, value)


def _cookie_headers(ctx: Any) -> list[str]:
    return [value for name, value in ctx.each_header() if name.casefold() == "cookie"]


def read_cookie(ctx: Any, name: str) -> Cookie:
    """Return the first cookie called ``name``; raise NoCookieError if absent."""
    found = next(_parse(_cookie_headers(ctx), name), None)
    if found is None:
        raise NoCookieError(name)
    return found


def read_cookies(ctx: Any) -> list[Cookie]:
    """Return every well-formed cookie in the request headers."""
    return list(_parse(_cookie_headers(ctx)))