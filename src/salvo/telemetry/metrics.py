"""Metrics helper utilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

from opentelemetry import metrics as otel_metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.metrics import Counter, Histogram, Meter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

if TYPE_CHECKING:  # pragma: no cover
    from .config import TelemetryConfig

MetricAttributes = Mapping[str, str | bool | int | float]

EXPORT_INTERVAL_MS = 5000

_METER_PROVIDER: MeterProvider | None = None
_METERS: dict[str, Meter] = {}
_COUNTERS: dict[str, Counter] = {}
_HISTOGRAMS: dict[str, Histogram] = {}


def get_meter(name: str = "salvo") -> Meter:
    """Meter for ``name``; proxies the global provider until one is installed."""
    meter = _METERS.get(name)
    if meter is None:
        meter = otel_metrics.get_meter(name)
        _METERS[name] = meter
    return meter


def init_metrics(config: TelemetryConfig) -> Meter:
    global _METER_PROVIDER

    readers = []
    if config.otlp_metrics_endpoint:
        exporter = OTLPMetricExporter(endpoint=config.otlp_metrics_endpoint, insecure=True)
        readers.append(
            PeriodicExportingMetricReader(exporter, export_interval_millis=EXPORT_INTERVAL_MS)
        )

    provider = MeterProvider(
        resource=Resource.create(config.resource_attributes_with_service()),
        metric_readers=readers,
    )
    otel_metrics.set_meter_provider(provider)
    _METER_PROVIDER = provider

    meter = provider.get_meter(config.service_name)
    _METERS.clear()
    _METERS[config.service_name] = meter
    _COUNTERS.clear()
    _HISTOGRAMS.clear()
    return meter


def record_game_metric(name: str, value: float, attrs: MetricAttributes | None = None) -> None:
    """Add ``value`` to the named counter, creating it on first use."""
    counter = _COUNTERS.get(name)
    if counter is None:
        counter = get_meter().create_counter(name)
        _COUNTERS[name] = counter
    counter.add(value, attributes=attrs or {})


def record_game_histogram(
    name: str, value: float, attrs: MetricAttributes | None = None, unit: str = "1"
) -> None:
    """Record one sample of the named histogram, creating it on first use."""
    histogram = _HISTOGRAMS.get(name)
    if histogram is None:
        histogram = get_meter().create_histogram(name, unit=unit)
        _HISTOGRAMS[name] = histogram
    histogram.record(value, attributes=attrs or {})
