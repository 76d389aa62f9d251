# hapikit

Building blocks for HTTP APIs that sit on top of whatever router you use.
Your router plugs in through a small adapter object, and hapikit supplies
the pieces around it:

- **Body formats**: JSON and CBOR out of the box, looked up by content
  type, including structured suffixes such as `application/my-format+json`
  and parameters such as `; charset=utf-8`.
- **OpenAPI serving**: the spec as JSON and YAML, an HTML documentation
  page, and one JSON Schema document per component schema.
- **Middleware chains**: compose `(ctx, next)` functions around a handler.
- **Response transformers**: functions that rewrite a response body before
  it is serialized.
- **Cookies**: read cookies from the request headers, skipping malformed
  names and values.
- **Conditional requests**: `If-Match`, `If-None-Match`,
  `If-Modified-Since` and `If-Unmodified-Since`, answering with
  `304 Not Modified` on reads and `412 Precondition Failed` on writes.
- **CLI auto-configuration**: describe the `x-cli-config` OpenAPI
  extension with `AutoConfig` and `AutoConfigVar`.

## Installation

```
pip install hapikit
```

## Creating an API

`default_config` in `hapikit.defaults` returns a `Config` with JSON and
CBOR registered (under `application/json`, `json`, `application/cbor` and
`cbor`), the spec under `/openapi`, the docs under `/docs` and schemas
under `/schemas`:

```python
from hapikit.api import new_api
from hapikit.defaults import default_config

config = default_config("My API", "1.0.0")
api = new_api(config, adapter)
```

The adapter is any object with a `handle(operation, handler)` method.
`new_api` runs the config's `create_hooks`, fills in missing parts of the
OpenAPI document (version `3.1.0`, `components`, `components.schemas`),
and registers these `GET` routes on the adapter when the matching path is
set:

- `<openapi_path>.json` and `<openapi_path>.yaml`: the OpenAPI document,
  encoded on first request and then cached.
- `<docs_path>`: an HTML page titled `<info.title> Reference` that loads
  the YAML spec. If the first server URL in the spec has a path, it is
  put in front of the spec URL.
- `<schemas_path>/{schema}`: one schema from `components.schemas`, with a
  trailing `.json` on the name ignored and `#/components/schemas/X`
  references rewritten to `<schemas_path>/X.json`.

Each handler receives a `Context`, the abstract class your adapter
implements: `method`, `host`, `url`, `param`, `query`, `header`,
`each_header`, `body_reader`, `set_status`, `set_header`,
`append_header`, `body_writer` and the rest.

The resulting `API` object offers:

- `marshal(content_type, value)` and `unmarshal(content_type, data)`;
  an unknown content type raises `UnknownContentTypeError`, and an empty
  one is unmarshalled as JSON.
- `transform(ctx, status, value)`, which runs the config's transformers
  in order.
- `use_middleware(*middlewares)` and the `middlewares` list.

The JSON format writes compact JSON followed by a newline. The CBOR
format writes canonical CBOR, with datetimes as tagged Unix timestamps.
Both are available as `JSON_FORMAT` and `CBOR_FORMAT`.

## Middleware chains

`Middlewares` is a list of `(ctx, next)` functions. `handler` wraps an
endpoint so the middlewares run first, in list order:

```python
from hapikit.middleware import Middlewares

chain = Middlewares([first, second])
handle = chain.handler(endpoint)
handle(ctx)  # first -> second -> endpoint
```

Inside a middleware, `with_value(ctx, key, value)` and
`with_context(ctx, mapping)` from `hapikit.api` give a context whose
`context` mapping holds the new request-scoped values. Pass that context
to `next`:

```python
from hapikit.api import with_value

def add_user(ctx, next_):
    next_(with_value(ctx, "user", "alice"))

api.use_middleware(add_user)
```

## Cookies

```python
from hapikit.cookies import NoCookieError, read_cookie, read_cookies

all_cookies = read_cookies(ctx)
try:
    session = read_cookie(ctx, "session")
except NoCookieError:
    session = None
```

Each `Cookie` has a `name` and a `value`. Quotes around a value are
removed. A name that is not an HTTP token, or a value containing a
control character, `"`, `;` or `\`, is skipped.

## Conditional requests

`ConditionalParams` in `hapikit.conditional` holds the four conditional
headers of a request:

```python
from datetime import datetime, timezone
from hapikit.conditional import ConditionalParams, StatusError

params = ConditionalParams(if_match=['"abc123"'])
params.resolve(ctx)  # POST, PUT, PATCH and DELETE count as writes
try:
    params.precondition_failed("abc123", datetime.now(timezone.utc))
except StatusError as err:
    print(err.status, err.message, err.errors)
```

ETags are compared without their quotes and weak `W/` prefix, and `*` in
`If-None-Match` matches any existing resource. When a condition fails, a
read raises `StatusError` with status 304, and a write raises it with
status 412 and one `ErrorDetail` (`message`, `location`, `value`) per
failing header. `has_conditional_params()` tells whether any were sent.

## Recording terminal demos

The package includes a small tool that types a shell script into an
`asciinema rec` session one character at a time, so documentation demos
can be recorded the same way each time. It needs the `asciinema`
executable on your `PATH`.

```
hapikit-asciinema-run demo.sh demo.cast
```

Arguments after the script are passed to `asciinema rec`. Each line of
the script is typed as a command, except control lines starting with
`#$`:

- `#$ delay 40`: milliseconds between typed characters (default 40)
- `#$ wait 100`: milliseconds to pause after each command (default 100)

An unknown control, or a missing or non-integer argument, stops parsing
with an error that gives the line number. The same parts are available
from Python as `load_script`, `parse_control` and `Script` in
`hapikit.asciinema`.

## What it does not do

hapikit has no HTTP server and no router adapters of its own. You supply
the adapter that connects `handle` to your router. It does not negotiate
a format from an `Accept` header. It does not register typed operations,
parse or validate request parameters and bodies, or generate schemas.
The OpenAPI document is a plain dict that you fill in yourself.

## Running the tests

```
pip install "hapikit[test]"
pytest
```