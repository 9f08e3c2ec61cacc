"""Federated GraphQL gateway building blocks: schema and query nodes, field permissions, an HTTP client, configuration and request context."""

__version__ = "0.1.0"

__all__ = ["ast", "auth", "client", "config", "context"]