#!/usr/bin/env python3
"""SaaS Billing Backend - Stripe subscription reconciliation service."""

import uvicorn

from core.config import settings
from core.logging_config import setup_logging


def main() -> None:
    """Serve the API with uvicorn."""
    setup_logging(settings.log_level)
    uvicorn.run(
        "api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )


if __name__ == "__main__":
    main()
