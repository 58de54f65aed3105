"""Utility script for issuing an API key from the command line."""

from __future__ import annotations

import argparse

from apirelay.core.config import Settings, get_settings
from apirelay.core.exceptions import ValidationError
from apirelay.services.key_store import KeyStore
from apirelay.services.models import ApiKeyRecord, ExpiryPolicy
from apirelay.storage import Storage, create_storage


def issue_key(
    storage: Storage,
    settings: Settings,
    *,
    name: str,
    providers: list[str],
    expires_in: str | None = None,
) -> ApiKeyRecord:
    """Create a key through the regular key store so the usual validation applies."""

    return KeyStore(storage, settings).create(name, providers, expires_in)


def _resolve_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Issue an API relay key")
    parser.add_argument("--name", required=True, help="Display name for the key")
    parser.add_argument(
        "--provider",
        dest="providers",
        action="append",
        default=[],
        help="Provider the key may access (repeat for several)",
    )
    parser.add_argument(
        "--expires-in",
        choices=[policy.value for policy in ExpiryPolicy],
        help="Key lifetime (defaults to the configured policy)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    args = _resolve_cli_args(argv)
    active_settings = settings or get_settings()
    if active_settings.storage_backend == "memory":
        print("Warning: memory storage is configured, the key is lost when this process exits")

    storage = create_storage(active_settings)
    try:
        record = issue_key(
            storage,
            active_settings,
            name=args.name,
            providers=args.providers,
            expires_in=args.expires_in,
        )
    except ValidationError as exc:
        raise SystemExit(exc.message) from exc
    finally:
        storage.close()

    expires = record.expires_at.isoformat() if record.expires_at else "never"
    print(f"Key created with id={record.id}")
    print(f"  providers: {', '.join(record.providers)}")
    print(f"  expires:   {expires}")
    print(f"  secret:    {record.key}")
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation only
    raise SystemExit(main())
