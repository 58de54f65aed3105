"""Wires the relay services around one storage backend."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from apirelay.core.config import Settings
from apirelay.core.exceptions import NotFoundError
from apirelay.services.authorization import AuthorizationGate
from apirelay.services.call_log import CallLog
from apirelay.services.key_store import KeyStore
from apirelay.services.provider_registry import ProviderRegistry
from apirelay.services.search import BraveSearchService
from apirelay.services.usage_ledger import UsageLedger
from apirelay.storage.base import Storage


@dataclass
class RelayServices:
    """Long-lived service graph shared by every request of one application."""

    settings: Settings
    storage: Storage
    key_store: KeyStore
    provider_registry: ProviderRegistry
    gate: AuthorizationGate
    usage_ledger: UsageLedger
    call_log: CallLog
    brave_search: BraveSearchService

    def close(self) -> None:
        self.storage.close()


def build_services(
    settings: Settings,
    storage: Storage,
    search_transport: httpx.AsyncBaseTransport | None = None,
) -> RelayServices:
    key_store = KeyStore(storage, settings)
    registry = ProviderRegistry(storage, settings)

    def resolve_key_name(key_id: str) -> str | None:
        try:
            return key_store.get(key_id).name
        except NotFoundError:
            return None

    return RelayServices(
        settings=settings,
        storage=storage,
        key_store=key_store,
        provider_registry=registry,
        gate=AuthorizationGate(key_store),
        usage_ledger=UsageLedger(storage, resolve_key_name),
        call_log=CallLog(storage, settings.call_log_default_limit),
        brave_search=BraveSearchService(registry, settings, transport=search_transport),
    )
