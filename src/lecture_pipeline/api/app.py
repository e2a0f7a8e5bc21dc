"""FastAPI application factory."""

import asyncio
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI

from lecture_pipeline.api.routes import router
from lecture_pipeline.config import load_config
from lecture_pipeline.events import EventConsumer
from lecture_pipeline.infrastructure import RabbitMQBroker
from lecture_pipeline.logging import setup_logging
from lecture_pipeline.pipeline import Pipeline, build_pipeline

logger = setup_logging(__name__)


def create_app(pipeline_factory: Callable[[], Pipeline] | None = None) -> FastAPI:
    """
    Creates the admin application.

    The pipeline is built when the application starts, inside its event
    loop. When RabbitMQ is enabled an event consumer runs on a background
    thread for the lifetime of the application.

    Args:
        pipeline_factory: Builds the pipeline. Defaults to building it from
            environment configuration.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if pipeline_factory is not None:
            pipeline = pipeline_factory()
        else:
            pipeline = build_pipeline(load_config())
        app.state.pipeline = pipeline

        consumer = None
        rabbitmq = pipeline.config.rabbitmq
        if rabbitmq.enabled:
            consumer = EventConsumer(
                lambda: RabbitMQBroker.connect(rabbitmq),
                pipeline.hooks,
                asyncio.get_running_loop(),
                rabbitmq,
            )
            consumer.start()

        logger.info("Lecture pipeline started", extra={"events": rabbitmq.enabled})
        yield

        if consumer is not None:
            consumer.stop()
        await pipeline.aclose()

    app = FastAPI(title="Lecture Pipeline API", lifespan=lifespan)
    app.include_router(router)
    return app
