"""Core relay services: key store, provider registry, authorization, usage accounting."""
