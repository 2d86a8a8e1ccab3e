from __future__ import annotations

import uvicorn
from feedproxy.main import app as fastapi_app
from feedproxy.settings import settings


def main() -> None:
    uvicorn.run(
        fastapi_app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
