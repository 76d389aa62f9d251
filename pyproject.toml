[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hapikit"
version = "0.1.0"
description = "Building blocks for HTTP APIs: body formats, middleware chains, cookies, conditional requests and OpenAPI serving"
requires-python = ">=3.10"
keywords = ["http", "api", "openapi", "rest", "middleware", "cbor", "conditional-requests", "asciinema"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Typing :: Typed",
]
dependencies = [
    "cbor2",
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
hapikit-asciinema-run = "hapikit.asciinema:main"

[tool.hatch.build.targets.wheel]
packages = ["hapikit"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
