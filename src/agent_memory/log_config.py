import os
import logging
import structlog

_CONFIGURED = False


def configure_logging(level: int = logging.INFO) -> None:
    """Route structlog and standard library logging through one structlog formatter.

    JSON lines by default; a console renderer when ENV=development.
    """
    global _CONFIGURED
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if _CONFIGURED:
        return

    structlog.configure(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer() if os.environ.get("ENV") == "development" else structlog.processors.JSONRenderer(),
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    _CONFIGURED = True
