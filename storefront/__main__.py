"""Run the storefront API with uvicorn."""

import uvicorn

from storefront.config.loader import get_settings


def main():
    settings = get_settings()
    uvicorn.run(
        "storefront.main:app",
        host=settings.listen_host,
        port=settings.listen_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
