import uvicorn

from timetracker.core.config import Settings


def main() -> None:
    settings = Settings.from_env()

    # Uvicorn owns SIGINT/SIGTERM handling; the app lifespan disposes the store.
    uvicorn.run(
        "timetracker.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=settings.is_development,
    )


if __name__ == "__main__":
    main()
