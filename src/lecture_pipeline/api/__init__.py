"""Admin API exports."""

from lecture_pipeline.api.app import create_app
from lecture_pipeline.api.routes import router

__all__ = ["create_app", "router"]
