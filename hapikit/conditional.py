"""Conditional request handling with ETags and modification times."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any

_WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@dataclass
class ErrorDetail:
    """Detail about one failed check, with where it happened and the value."""

    message: str
    location: str = ""
    value: Any = None

    def __str__(self) -> str:
        if not self.location:
            return self.message
        return f"{self.message} ({self.location}: {self.value})"


class StatusError(Exception):
    """An error carrying an HTTP status code and optional details."""

    def __init__(self, status: int, message: str, errors: list[ErrorDetail] | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.errors = list(errors or [])


def _trim_etag(value: str) -> str:
    """Strip the weak ``W/`` prefix and surrounding quotes from an ETag."""
    if value.startswith("W/") and len(value) > 2:
        value = value[2:]
    return value.strip('"')


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _http_date(value: datetime | None) -> str:
    if value is None:
        value = datetime.min
    return _utc(value).strftime("%a, %d %b %Y %H:%M:%S GMT")


def _after(a: datetime | None, b: datetime) -> bool:
    """Whether ``a`` is strictly later than ``b``; a missing time is never later."""
    if a is None:
        return False
    return _utc(a) > _utc(b)


@dataclass
class ConditionalParams:
    """The ``If-Match``, ``If-None-Match``, ``If-Modified-Since`` and
    ``If-Unmodified-Since`` values sent with a request."""

    if_match: list[str] = field(default_factory=list)
    if_none_match: list[str] = field(default_factory=list)
    if_modified_since: datetime | None = None
    if_unmodified_since: datetime | None = None
    # Writes fail with 412 and details; reads answer 304 Not Modified.
    _is_write: bool = field(default=False, repr=False, compare=False)

    def resolve(self, ctx: Any) -> None:
        """Note whether the request is a write, from its method."""
        self._is_write = ctx.method.upper() in _WRITE_METHODS

    def has_conditional_params(self) -> bool:
        """Whether any conditional header was sent."""
        return bool(
            self.if_match
            or self.if_none_match
            or self.if_modified_since is not None
            or self.if_unmodified_since is not None
        )

    def precondition_failed(self, etag: str, modified: datetime | None) -> None:
        """Check the conditions against a resource's ETag and modification time.

        Raises StatusError with 304 for reads or 412 for writes when a
        condition fails; returns quietly otherwise.
        """
        failed = False
        errors: list[ErrorDetail] = []
        found_msg = f"found resource with ETag {etag}" if etag else "found no existing resource"

        for match in self.if_none_match:
            trimmed = _trim_etag(match)
            if trimmed == etag or (trimmed == "*" and etag):
                if self._is_write:
                    errors.append(
                        ErrorDetail(
                            message=f"If-None-Match: {match} precondition failed, {found_msg}",
                            location="request.headers.If-None-Match",
                            value=match,
                        )
                    )
                failed = True

        if self.if_match and not any(_trim_etag(m) == etag for m in self.if_match):
            if self._is_write:
                errors.append(
                    ErrorDetail(
                        message=f"If-Match precondition failed, {found_msg}",
                        location="request.headers.If-Match",
                        value=list(self.if_match),
                    )
                )
            failed = True

        if self.if_modified_since is not None and not _after(modified, self.if_modified_since):
            if self._is_write:
                since = _http_date(self.if_modified_since)
                errors.append(
                    ErrorDetail(
                        message=(
                            f"If-Modified-Since: {since} precondition failed, "
                            f"resource was modified at {_http_date(modified)}"
                        ),
                        location="request.headers.If-Modified-Since",
                        value=since,
                    )
                )
            failed = True

        if self.if_unmodified_since is not None and _after(modified, self.if_unmodified_since):
            if self._is_write:
                since = _http_date(self.if_unmodified_since)
                errors.append(
                    ErrorDetail(
                        message=(
                            f"If-Unmodified-Since: {since} precondition failed, "
                            f"resource was modified at {_http_date(modified)}"
                        ),
                        location="request.headers.If-Unmodified-Since",
                        value=since,
                    )
                )
            failed = True

        if not failed:
            return
        if self._is_write:
            status = HTTPStatus.PRECONDITION_FAILED
            raise StatusError(int(status), status.phrase, errors)
        status = HTTPStatus.NOT_MODIFIED
        raise StatusError(int(status), status.phrase)