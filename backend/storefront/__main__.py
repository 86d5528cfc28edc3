"""Runs the API with uvicorn: `python -m storefront` or the `storefront` script."""

import uvicorn

from storefront.config import settings


def main() -> None:
    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
