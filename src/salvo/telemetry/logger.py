"""Logging setup, optionally bridged to OpenTelemetry logs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from opentelemetry.instrumentation.logging import LoggingInstrumentor

if TYPE_CHECKING:  # pragma: no cover
    from .config import TelemetryConfig

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s "
    "| trace_id=%(otelTraceID)s span_id=%(otelSpanID)s"
)

_OTEL_HANDLER: logging.Handler | None = None


class TraceContextDefaults(logging.Filter):
    """Fill in trace/span ids for records created before instrumentation."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        for attr in ("otelTraceID", "otelSpanID"):
            if not hasattr(record, attr):
                setattr(record, attr, "-")
        return True


def get_logger(name: str = "salvo") -> logging.Logger:
    return logging.getLogger(name)


def instrument_trace_context() -> None:
    """Stamp the active trace and span ids on every log record."""
    instrumentor = LoggingInstrumentor()
    if not instrumentor.is_instrumented_by_opentelemetry:
        instrumentor.instrument(set_logging_format=False)


def configure_console_logging(level: int | str = logging.INFO) -> None:
    """Install a console handler on the root logger once."""
    instrument_trace_context()
    root = logging.getLogger()
    if root.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(TraceContextDefaults())
    root.addHandler(handler)
    root.setLevel(level)


def init_logging(config: TelemetryConfig) -> logging.Logger:
    """Forward log records to an OTLP log exporter."""
    global _OTEL_HANDLER
    logger = get_logger(config.service_name)
    if _OTEL_HANDLER is not None:
        return logger

    from opentelemetry._logs import set_logger_provider
    from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
    from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
    from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
    from opentelemetry.sdk.resources import Resource

    provider = LoggerProvider(resource=Resource.create(config.resource_attributes_with_service()))
    if config.otlp_logs_endpoint:
        exporter = OTLPLogExporter(endpoint=config.otlp_logs_endpoint, insecure=True)
        provider.add_log_record_processor(BatchLogRecordProcessor(exporter))
    set_logger_provider(provider)

    configure_console_logging()
    handler = LoggingHandler(level=logging.INFO, logger_provider=provider)
    handler.addFilter(TraceContextDefaults())
    logging.getLogger().addHandler(handler)
    _OTEL_HANDLER = handler
    return logger
