"""Default body formats and a ready-made API configuration."""

from __future__ import annotations

import json
from datetime import timezone
from typing import Any

import cbor2

from hapikit.api import Config, Format


def _json_marshal(value: Any) -> bytes:
    return (json.dumps(value, separators=(",", ":"), ensure_ascii=False) + "\n").encode()


def _json_unmarshal(data: bytes) -> Any:
    return json.loads(data)


def _cbor_marshal(value: Any) -> bytes:
    # Canonical encoding: sorted keys, shortest floats, definite lengths,
    # datetimes as tagged Unix timestamps.
    return cbor2.dumps(
        value,
        canonical=True,
        datetime_as_timestamp=True,
        timezone=timezone.utc,
    )


def _cbor_unmarshal(data: bytes) -> Any:
    return cbor2.loads(data)


JSON_FORMAT = Format(marshal=_json_marshal, unmarshal=_json_unmarshal)
"""JSON body format, one document per line."""

CBOR_FORMAT = Format(marshal=_cbor_marshal, unmarshal=_cbor_unmarshal)
"""Canonical CBOR body format."""


def default_config(title: str, version: str) -> Config:
    """Return a configuration supporting JSON and CBOR with the standard routes.

    The spec is served under ``/openapi``, the documentation under ``/docs``
    and the schemas under ``/schemas``.
    """
    return Config(
        openapi={
            "openapi": "3.1.0",
            "info": {"title": title, "version": version},
            "components": {"schemas": {}},
        },
        openapi_path="/openapi",
        docs_path="/docs",
        schemas_path="/schemas",
        formats={
            "application/json": JSON_FORMAT,
            "json": JSON_FORMAT,
            "application/cbor": CBOR_FORMAT,
            "cbor": CBOR_FORMAT,
        },
        default_format="application/json",
    )