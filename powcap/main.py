"""powcap entrypoint."""

import uvicorn

from powcap.config.settings import get_settings


def cli() -> None:
    """CLI entrypoint."""
    settings = get_settings()
    uvicorn.run(
        "powcap.web.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    cli()
