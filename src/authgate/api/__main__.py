"""
authgate.api.__main__

Entrypoint for running the FastAPI application via `python -m authgate.api`.
"""

from __future__ import annotations

import uvicorn

from authgate.api.app import create_app
from authgate.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# Also installed as the `authgate-api` console script. Settings come from `AUTHGATE_*`
# environment variables; uvicorn's own log config is disabled so every line
# goes through structlog.
