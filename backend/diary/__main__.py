"""Run the Diary API with uvicorn: ``python -m diary``."""

import uvicorn

from diary.config import settings


def main() -> None:
    uvicorn.run(
        "diary.app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
