"""
Run the API with uvicorn: `python -m primegate` or the `primegate` script.

Listens on HOST:PORT (default 0.0.0.0:5000).
"""

import uvicorn

from primegate.config import settings


def main() -> None:
    uvicorn.run(
        "primegate.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
