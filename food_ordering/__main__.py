"""Run the API with uvicorn: ``python -m food_ordering``."""

import uvicorn

from food_ordering.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "food_ordering.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development and settings.debug,
    )


if __name__ == "__main__":
    main()
