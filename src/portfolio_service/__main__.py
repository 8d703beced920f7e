"""Entrypoint: python -m portfolio_service"""
from __future__ import annotations

import uvicorn

from portfolio_service.config import settings


def main() -> None:
    uvicorn.run(
        "portfolio_service.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
