[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bramble"
version = "0.1.0"
description = "Building blocks for a federated GraphQL gateway: field permissions, a downstream client, configuration and request context"
requires-python = ">=3.10"
dependencies = []
keywords = ["graphql", "gateway", "federation", "permissions", "api"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bramble"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
