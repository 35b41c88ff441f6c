"""Run the API server with ``python -m raitha``."""

import logging

import uvicorn

from raitha.config import settings


def main() -> None:
    """Configure logging and serve the application."""
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger(__name__).info(
        f"Starting Raitha negotiation API on {settings.API_HOST}:{settings.API_PORT}"
    )
    uvicorn.run(
        "raitha.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
