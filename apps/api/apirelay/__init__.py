"""API Relay: API-key management and provider proxy gateway."""

__version__ = "0.1.0"
