#!/usr/bin/env python3
"""
Process Template Advisor API entrypoint
"""

import os

import uvicorn
from dotenv import load_dotenv

# Environment must be loaded before config is imported
load_dotenv()

from template_advisor.core.app import create_app  # noqa: E402

app = create_app()


def main():
    environment = os.getenv("ENVIRONMENT", "production")
    port = int(os.getenv("PORT", "8000"))
    # Sessions live in process memory, so one worker unless overridden
    workers = int(os.getenv("WORKERS", "1") or 1)

    if environment == "production":
        uvicorn.run(
            "template_advisor.main:app",
            host="0.0.0.0",
            port=port,
            workers=workers,
            log_level="info",
            access_log=True,
            server_header=False,
        )
    else:
        uvicorn.run(
            "template_advisor.main:app",
            host="127.0.0.1",
            port=port,
            reload=True,
            log_level="debug",
        )


if __name__ == "__main__":
    main()
