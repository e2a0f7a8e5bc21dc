"""FastAPI dependency injection configuration."""

from typing import Annotated

from fastapi import Depends, Request

from lecture_pipeline.pipeline import Pipeline


def get_pipeline(request: Request) -> Pipeline:
    """Returns the pipeline built during application startup."""
    return request.app.state.pipeline


PipelineDep = Annotated[Pipeline, Depends(get_pipeline)]
