import os

import uvicorn

from receipt_insights.app import app
from receipt_insights.core import settings


def run() -> None:
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=settings.get_env_int("PORT", 8000, min_value=1),
        log_config=None,
    )


if __name__ == "__main__":
    run()
