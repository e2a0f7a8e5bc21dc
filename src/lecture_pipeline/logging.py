import logging
import sys

from pythonjsonlogger import jsonlogger

_configured = False


def setup_logging(name: str | None = None) -> logging.Logger:
    """
    Configures structured JSON logging for the pipeline and returns a logger.

    The first call installs a JSON formatter on stdout that includes timestamp,
    level, logger name, message, trace_id, and span_id, and routes the Uvicorn
    loggers through the same handler. Later calls only hand out loggers, so
    handlers added afterwards (for example by test tooling) are left in place.

    Args:
        name: Logger name. Defaults to the root logger.

    Returns:
        logging.Logger: The requested logger instance.
    """
    global _configured

    if not _configured:
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
        )
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.INFO)
        root_logger.handlers = []
        root_logger.addHandler(stream_handler)

        for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
            u_logger = logging.getLogger(logger_name)
            u_logger.setLevel(logging.INFO)
            u_logger.handlers = []
            u_logger.addHandler(stream_handler)
            u_logger.propagate = False

        _configured = True

    return logging.getLogger(name)
