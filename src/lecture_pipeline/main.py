"""Lecture pipeline entry point."""

import os

import uvicorn
from ddtrace import patch_all

from lecture_pipeline.api import create_app
from lecture_pipeline.logging import setup_logging

logger = setup_logging(__name__)
patch_all()

app = create_app()


def main():
    """Starts the admin API, the transcript queue, and the event consumer."""
    logger.info("Starting lecture pipeline")
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
