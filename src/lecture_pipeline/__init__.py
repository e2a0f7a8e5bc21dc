"""Background transcript and quiz generation for lecture videos."""

__version__ = "0.1.0"
