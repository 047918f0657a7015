"""Module entrypoint to run `python -m mysqlweb`."""
import uvicorn

from mysqlweb.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "mysqlweb.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
