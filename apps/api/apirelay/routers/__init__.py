"""FastAPI routers."""

from . import health, keys, maintenance, providers, proxy, stats

__all__ = ["health", "keys", "maintenance", "providers", "proxy", "stats"]
