"""
Run the API server with uvicorn: python -m lifebook
"""

import uvicorn

from lifebook.config import get_settings


def main():
    settings = get_settings()
    uvicorn.run(
        "lifebook.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
