"""The API object: formats, transformers, middleware and built-in routes."""

from __future__ import annotations

import dataclasses
import functools
import json
import posixpath
import re
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, BinaryIO, Callable, Iterator, Mapping
from urllib.parse import urlsplit

import yaml

from hapikit.middleware import Middlewares

_RX_SCHEMA = re.compile(r'#/components/schemas/([^"]+)')


class UnknownContentTypeError(ValueError):
    """Raised when no format is registered for a content type."""

    def __init__(self, content_type: str) -> None:
        super().__init__(f"unknown content type: {content_type}")
        self.content_type = content_type


@dataclass
class Operation:
    """A single routed operation."""

    method: str
    path: str
    operation_id: str = ""
    summary: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    deprecated: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)


class Context(ABC):
    """Request/response context handed to handlers by a router adapter."""

    @property
    @abstractmethod
    def operation(self) -> Operation | None:
        """The operation that matched the request."""

    @property
    @abstractmethod
    def context(self) -> Mapping[Any, Any]:
        """Request-scoped values."""

    @property
    @abstractmethod
    def method(self) -> str:
        """The HTTP method."""

    @property
    @abstractmethod
    def host(self) -> str:
        """The HTTP host."""

    @property
    @abstractmethod
    def url(self) -> str:
        """The full request URL."""

    @abstractmethod
    def param(self, name: str) -> str:
        """Value of a path parameter."""

    @abstractmethod
    def query(self, name: str) -> str:
        """Value of a query parameter."""

    @abstractmethod
    def header(self, name: str) -> str:
        """Value of a request header."""

    @abstractmethod
    def each_header(self) -> Iterator[tuple[str, str]]:
        """Every request header as (name, value) pairs."""

    @abstractmethod
    def body_reader(self) -> BinaryIO:
        """The request body stream."""

    @abstractmethod
    def multipart_form(self) -> Any:
        """The parsed multipart form, if any."""

    @abstractmethod
    def set_read_deadline(self, deadline: datetime) -> None:
        """Set the read deadline for the request body."""

    @abstractmethod
    def set_status(self, code: int) -> None:
        """Set the response status code."""

    @abstractmethod
    def set_header(self, name: str, value: str) -> None:
        """Set a response header, replacing existing values."""

    @abstractmethod
    def append_header(self, name: str, value: str) -> None:
        """Add a value to a response header."""

    @abstractmethod
    def body_writer(self) -> Any:
        """The writable response body."""


class _SubContext(Context):
    def __init__(self, inner: Context, override: Mapping[Any, Any]) -> None:
        self._inner = inner
        self._override = override

    @property
    def operation(self) -> Operation | None:
        return self._inner.operation

    @property
    def context(self) -> Mapping[Any, Any]:
        return self._override

    @property
    def method(self) -> str:
        return self._inner.method

    @property
    def host(self) -> str:
        return self._inner.host

    @property
    def url(self) -> str:
        return self._inner.url

    def param(self, name: str) -> str:
        return self._inner.param(name)

    def query(self, name: str) -> str:
        return self._inner.query(name)

    def header(self, name: str) -> str:
        return self._inner.header(name)

    def each_header(self) -> Iterator[tuple[str, str]]:
        return self._inner.each_header()

    def body_reader(self) -> BinaryIO:
        return self._inner.body_reader()

    def multipart_form(self) -> Any:
        return self._inner.multipart_form()

    def set_read_deadline(self, deadline: datetime) -> None:
        self._inner.set_read_deadline(deadline)

    def set_status(self, code: int) -> None:
        self._inner.set_status(code)

    def set_header(self, name: str, value: str) -> None:
        self._inner.set_header(name, value)

    def append_header(self, name: str, value: str) -> None:
        self._inner.append_header(name, value)

    def body_writer(self) -> Any:
        return self._inner.body_writer()


def with_context(ctx: Context, override: Mapping[Any, Any]) -> Context:
    """Return a context whose request-scoped values are replaced by ``override``."""
    return _SubContext(ctx, override)


def with_value(ctx: Context, key: Any, value: Any) -> Context:
    """Return a context with ``key`` set to ``value`` in its request-scoped values."""
    return with_context(ctx, MappingProxyType({**ctx.context, key: value}))


Transformer = Callable[[Context, str, Any], Any]


@dataclass(frozen=True)
class Format:
    """A request/response body format."""

    marshal: Callable[[Any], bytes]
    unmarshal: Callable[[bytes], Any]


@dataclass
class Config:
    """Settings for a new API.

    ``openapi`` is the OpenAPI document as a plain mapping. The paths, when
    set, enable the spec, documentation and schema routes.
    """

    openapi: dict[str, Any] | None = None
    openapi_path: str = ""
    docs_path: str = ""
    schemas_path: str = ""
    formats: dict[str, Format] = field(default_factory=dict)
    default_format: str = ""
    transformers: list[Transformer] = field(default_factory=list)
    create_hooks: list[Callable[["Config"], "Config"]] = field(default_factory=list)


class API:
    """An API bound to a router adapter. Create it with :func:`new_api`."""

    def __init__(self, config: Config, adapter: Any) -> None:
        self._config = config
        self._adapter = adapter
        self._formats = dict(config.formats)
        self._transformers = list(config.transformers)
        self._middlewares = Middlewares()

    @property
    def config(self) -> Config:
        return self._config

    @property
    def adapter(self) -> Any:
        return self._adapter

    @property
    def openapi(self) -> dict[str, Any]:
        return self._config.openapi

    @property
    def middlewares(self) -> Middlewares:
        return self._middlewares

    def unmarshal(self, content_type: str, data: bytes) -> Any:
        """Decode ``data`` using the format for ``content_type``.

        Handles forms such as ``application/json; charset=utf-8`` and
        ``my/format+json``; an empty type is taken to be JSON.
        """
        start = content_type.find("+") + 1
        end = content_type.find(";")
        if end == -1:
            end = len(content_type)
        ct = content_type[start:end] or "application/json"
        fmt = self._formats.get(ct)
        if fmt is None:
            raise UnknownContentTypeError(content_type)
        return fmt.unmarshal(data)

    def marshal(self, content_type: str, value: Any) -> bytes:
        """Encode ``value`` using the format for ``content_type``."""
        fmt = self._formats.get(content_type)
        if fmt is None:
            fmt = self._formats.get(content_type[content_type.find("+") + 1 :])
        if fmt is None:
            raise UnknownContentTypeError(content_type)
        return fmt.marshal(value)

    def transform(self, ctx: Context, status: str, value: Any) -> Any:
        """Run every transformer over ``value`` in order."""
        for transformer in self._transformers:
            value = transformer(ctx, status, value)
        return value

    def use_middleware(self, *middlewares: Callable[[Context, Callable], None]) -> None:
        """Append middleware to the API's middleware stack."""
        self._middlewares.extend(middlewares)


_DOCS_TEMPLATE = string.Template(
    """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="referrer" content="same-origin" />
    <meta name="viewport" content="width=device-width, initial-scale=1, shrink-to-fit=no" />
    <title>$title</title>
    <!-- Embed elements Elements via Web Component -->
    <link href="https://unpkg.com/@stoplight/elements@8.1.0/styles.min.css" rel="stylesheet" />
    <script src="https://unpkg.com/@stoplight/elements@8.1.0/web-components.min.js"
            integrity="sha256-985sDMZYbGa0LDS8jYmC4VbkVlh7DZ0TWejFv+raZII="
            crossorigin="anonymous"></script>
  </head>
  <body style="height: 100vh;">

    <elements-api
      apiDescriptionUrl="$spec_url.yaml"
      router="hash"
      layout="sidebar"
      tryItCredentialsPolicy="same-origin"
    />

  </body>
</html>"""
)


def _api_prefix(spec: Mapping[str, Any]) -> str:
    """Path of the first server URL that has one, else an empty string."""
    for server in spec.get("servers") or []:
        try:
            path = urlsplit(server.get("url", "")).path
        except ValueError:
            continue
        if path:
            return path
    return ""


def _schema_map(registry: Any) -> Mapping[str, Any]:
    return registry.map() if callable(getattr(registry, "map", None)) else registry


def new_api(config: Config, adapter: Any) -> API:
    """Create an API for ``adapter`` and register its built-in routes."""
    for hook in list(config.create_hooks):
        config = hook(config)
    config = dataclasses.replace(config)

    if config.openapi is None:
        config.openapi = {}
    spec = config.openapi
    if not spec.get("openapi"):
        spec["openapi"] = "3.1.0"
    if spec.get("components") is None:
        spec["components"] = {}
    if spec["components"].get("schemas") is None:
        spec["components"]["schemas"] = {}

    if not config.default_format and "application/json" in config.formats:
        config.default_format = "application/json"

    api = API(config, adapter)

    if config.openapi_path:
        @functools.lru_cache(maxsize=None)
        def spec_json() -> bytes:
            return json.dumps(api.openapi, separators=(",", ":")).encode()

        @functools.lru_cache(maxsize=None)
        def spec_yaml() -> bytes:
            return yaml.safe_dump(api.openapi, sort_keys=False).encode()

        def serve_json(ctx: Context) -> None:
            ctx.set_header("Content-Type", "application/vnd.oai.openapi+json")
            ctx.body_writer().write(spec_json())

        def serve_yaml(ctx: Context) -> None:
            ctx.set_header("Content-Type", "application/vnd.oai.openapi+yaml")
            ctx.body_writer().write(spec_yaml())

        adapter.handle(Operation(method="GET", path=config.openapi_path + ".json"), serve_json)
        adapter.handle(Operation(method="GET", path=config.openapi_path + ".yaml"), serve_yaml)

    if config.docs_path:
        def serve_docs(ctx: Context) -> None:
            spec_url = config.openapi_path
            prefix = _api_prefix(api.openapi)
            if prefix:
                spec_url = posixpath.normpath(f"{prefix}/{spec_url}")
            title = "Elements in HTML"
            info = api.openapi.get("info") or {}
            if info.get("title"):
                title = info["title"] + " Reference"
            ctx.set_header("Content-Type", "text/html")
            html = _DOCS_TEMPLATE.substitute(title=title, spec_url=spec_url)
            ctx.body_writer().write(html.encode())

        adapter.handle(Operation(method="GET", path=config.docs_path), serve_docs)

    if config.schemas_path:
        schemas_path = config.schemas_path

        def serve_schema(ctx: Context) -> None:
            # Some routers dislike a path param with a suffix, so strip it here.
            name = ctx.param("schema").removesuffix(".json")
            ctx.set_header("Content-Type", "application/json")
            schemas = _schema_map(api.openapi["components"]["schemas"])
            body = json.dumps(schemas.get(name), separators=(",", ":"))
            body = _RX_SCHEMA.sub(lambda m: f"{schemas_path}/{m.group(1)}.json", body)
            ctx.body_writer().write(body.encode())

        adapter.handle(Operation(method="GET", path=schemas_path + "/{schema}"), serve_schema)

    return api