"""Entry-point script delegating to apirelay.scripts.create_key."""

from __future__ import annotations

from apirelay.scripts.create_key import main


if __name__ == "__main__":  # pragma: no cover - manual invocation only
    raise SystemExit(main())
