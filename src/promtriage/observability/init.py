"""
Observability setup

``initialize_observability`` is called once per process (by the CLI group)
and wires up logging, tracing and self-metrics from a TelemetryConfig. Log
records always go to stderr so that reports printed on stdout stay clean.
"""

import logging
import logging.config

from opentelemetry import trace

from .config import LoggingConfig, TelemetryConfig
from .metrics import initialize_metrics, reset_metrics
from .tracer import initialize_tracing

logger = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FIELDS = "%(asctime)s %(name)s %(levelname)s %(message)s"

_initialized = False


def _logging_dict(config: LoggingConfig) -> dict:
    level = config.level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "text": {"format": TEXT_FORMAT},
            "json": {"class": "pythonjsonlogger.json.JsonFormatter", "format": JSON_FIELDS},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": config.format,
                "level": level,
            }
        },
        "loggers": {"promtriage": {"level": level}},
        "root": {"level": level, "handlers": ["stderr"]},
    }


def configure_logging(config: LoggingConfig, with_trace_ids: bool = False) -> None:
    """Send log records to stderr as plain text or JSON lines"""
    logging.config.dictConfig(_logging_dict(config))

    if with_trace_ids and config.include_trace_id:
        for handler in logging.getLogger().handlers:
            handler.addFilter(TraceContextFilter())


class TraceContextFilter(logging.Filter):
    """Stamps records with the ids of the span that was current when logging"""

    def filter(self, record):
        context = trace.get_current_span().get_span_context()
        if context.is_valid:
            record.trace_id = trace.format_trace_id(context.trace_id)
            record.span_id = trace.format_span_id(context.span_id)
        else:
            record.trace_id = record.span_id = ""
        return True


def initialize_observability(config: TelemetryConfig) -> None:
    """Configure logging, then tracing and self-metrics as enabled in ``config``"""
    global _initialized

    if _initialized:
        logger.debug("Observability already initialized")
        return

    configure_logging(config.logging, with_trace_ids=config.tracing.enabled)
    _initialized = True

    if not config.enabled:
        logger.info("Telemetry is disabled")
        return

    if config.tracing.enabled:
        try:
            initialize_tracing(config)
        except Exception as e:
            logger.error(f"Failed to initialize tracing: {e}")

    if config.metrics.enabled:
        initialize_metrics(config)

    logger.info(f"Observability initialized for environment: {config.environment}")


def shutdown_observability() -> None:
    """Flush pending spans and drop the global metrics collector"""
    global _initialized

    if not _initialized:
        return

    shutdown = getattr(trace.get_tracer_provider(), "shutdown", None)
    if callable(shutdown):
        shutdown()

    reset_metrics()
    _initialized = False
    logger.debug("Observability shut down")
