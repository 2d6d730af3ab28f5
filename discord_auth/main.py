"""ASGI entry point: ``uvicorn discord_auth.main:app``."""

import uvicorn

from discord_auth.api.http.app import create_app
from discord_auth.api.utils.app_startup import configure_logging
from discord_auth.runtime.context import get_config

configure_logging()

app = create_app()


if __name__ == "__main__":
    config = get_config()
    uvicorn.run(
        app,
        host=config.app.host,
        port=config.app.port,
        access_log=False,  # request logging happens in middleware
    )
