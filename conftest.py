"""Root conftest: test settings must be in place before portfolio_service.config is imported.

``.env.test`` supplies defaults; the outbox dispatcher and JWKS mode are
forced off so a developer ``.env`` can never point the test app at a live
database or identity provider.
"""
from __future__ import annotations

import os
from pathlib import Path

FORCED = {
    "OUTBOX_RUN_IN_APP": "false",
    "JWT_VERIFY_MODE": "hs256",
}


def _load_env_file(path: Path) -> None:
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        os.environ.setdefault(key.strip(), value.strip())


_env_test = Path(__file__).resolve().parent / ".env.test"
if _env_test.exists():
    _load_env_file(_env_test)
os.environ.update(FORCED)
