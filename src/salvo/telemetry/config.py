"""Telemetry configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, Field

from .logger import init_logging
from .metrics import init_metrics
from .tracer import init_tracing

_TRUTHY = {"1", "true", "yes", "on"}

# field -> (salvo variable, OpenTelemetry variable)
_SWITCHES: dict[str, tuple[str, str]] = {
    "enable_tracing": ("SALVO_ENABLE_TRACING", "OTEL_TRACES_ENABLED"),
    "enable_metrics": ("SALVO_ENABLE_METRICS", "OTEL_METRICS_ENABLED"),
    "enable_logging": ("SALVO_ENABLE_LOGGING", "OTEL_LOGS_ENABLED"),
}

# field -> (signal specific variable, path appended to OTEL_EXPORTER_OTLP_ENDPOINT)
_ENDPOINTS: dict[str, tuple[str, str]] = {
    "otlp_traces_endpoint": ("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "v1/traces"),
    "otlp_metrics_endpoint": ("OTEL_EXPORTER_OTLP_METRICS_ENDPOINT", "v1/metrics"),
    "otlp_logs_endpoint": ("OTEL_EXPORTER_OTLP_LOGS_ENDPOINT", "v1/logs"),
}

_ENDPOINT_SWITCH = {
    "otlp_traces_endpoint": "enable_tracing",
    "otlp_metrics_endpoint": "enable_metrics",
    "otlp_logs_endpoint": "enable_logging",
}


class TelemetryConfig(BaseModel):
    """Which OpenTelemetry signals to export, and where."""

    enable_tracing: bool = False
    enable_metrics: bool = False
    enable_logging: bool = False
    otlp_traces_endpoint: str | None = None
    otlp_metrics_endpoint: str | None = None
    otlp_logs_endpoint: str | None = None
    service_name: str = "salvo"
    service_namespace: str = "game"
    resource_attributes: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_env(cls, **overrides: Any) -> TelemetryConfig:
        """Build a config from ``SALVO_*`` and ``OTEL_*`` variables, then apply overrides."""
        data: dict[str, Any] = {}

        for field_name, names in _SWITCHES.items():
            for name in names:
                raw = os.getenv(name)
                if raw is not None:
                    data[field_name] = raw.strip().lower() in _TRUTHY
                    break

        base = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
        for field_name, (specific, path) in _ENDPOINTS.items():
            endpoint = os.getenv(specific)
            if not endpoint and base:
                endpoint = f"{base.rstrip('/')}/{path}"
            if endpoint:
                data[field_name] = endpoint
                # An endpoint implies its exporter is wanted.
                data[_ENDPOINT_SWITCH[field_name]] = True

        if os.getenv("OTEL_SERVICE_NAME"):
            data["service_name"] = os.environ["OTEL_SERVICE_NAME"]
        if os.getenv("OTEL_SERVICE_NAMESPACE"):
            data["service_namespace"] = os.environ["OTEL_SERVICE_NAMESPACE"]

        attributes: dict[str, str] = {}
        for part in os.getenv("OTEL_RESOURCE_ATTRIBUTES", "").split(","):
            key, sep, value = part.partition("=")
            if sep and key.strip():
                attributes[key.strip()] = value.strip()
        if attributes:
            data["resource_attributes"] = attributes

        data.update(overrides)
        return cls(**data)

    def resource_attributes_with_service(self) -> dict[str, str]:
        """Resource attributes including the service identity."""
        return {
            "service.name": self.service_name,
            "service.namespace": self.service_namespace,
            **self.resource_attributes,
        }


@lru_cache(maxsize=1)
def load_telemetry_config() -> TelemetryConfig:
    """Load and cache telemetry config from the environment."""
    return TelemetryConfig.from_env()


def init_telemetry(config: TelemetryConfig | None = None) -> TelemetryConfig:
    """Initialise the enabled telemetry signals."""
    resolved = config or load_telemetry_config()
    if resolved.enable_tracing:
        init_tracing(resolved)
    if resolved.enable_metrics:
        init_metrics(resolved)
    if resolved.enable_logging:
        init_logging(resolved)
    return resolved
