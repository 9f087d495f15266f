import uvicorn

from messenger.database.config.config import settings


def main() -> None:
    uvicorn.run("messenger.main:app", host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
