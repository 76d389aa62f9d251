"""Building blocks for HTTP APIs: body formats, OpenAPI routes, middleware, cookies,
conditional requests and a tool for recording terminal demos."""

__version__ = "0.1.0"