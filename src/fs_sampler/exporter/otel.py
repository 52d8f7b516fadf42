"""OpenTelemetry exporter – pushes disk-usage gauges via OTLP/HTTP."""

from __future__ import annotations

import logging
from typing import Any

from opentelemetry import metrics
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource, SERVICE_NAME

from ..config import DEFAULT_TAG, OtelExporterConfig
from .base import BaseExporter

logger = logging.getLogger(__name__)

_SIZE_FIELDS = ("size", "free", "used")


class OtelExporter(BaseExporter):
    """Exports each record as OpenTelemetry gauge observations.

    ``fs.size``, ``fs.free`` and ``fs.used`` carry the record's truncated
    magnitudes with a ``unit`` attribute; ``fs.usage_percent`` carries
    ``perc``. The SDK's ``PeriodicExportingMetricReader`` flushes them to
    the configured OTLP/HTTP endpoint.
    """

    def __init__(self, config: OtelExporterConfig, default_tag: str = DEFAULT_TAG) -> None:
        super().__init__(default_tag)
        self._config = config
        resource = Resource.create({SERVICE_NAME: config.service_name})

        exporter_kwargs: dict[str, Any] = {
            "endpoint": f"{config.endpoint.rstrip('/')}/v1/metrics",
        }
        if config.headers:
            exporter_kwargs["headers"] = config.headers

        reader = PeriodicExportingMetricReader(
            OTLPMetricExporter(**exporter_kwargs),
            export_interval_millis=config.export_interval_ms,
        )
        self._provider = MeterProvider(resource=resource, metric_readers=[reader])
        self._meter = self._provider.get_meter("fs_sampler")
        self._gauges = {
            name: self._meter.create_gauge(
                name=f"fs.{name}",
                description=f"Filesystem {name} (truncated, see unit attribute)",
            )
            for name in _SIZE_FIELDS
        }
        self._percent = self._meter.create_gauge(
            name="fs.usage_percent",
            unit="%",
            description="Filesystem utilization percentage",
        )

        logger.info(
            "OtelExporter initialized → %s (service=%s)",
            config.endpoint,
            config.service_name,
        )

    def emit(self, tag: str | None, timestamp: int, record: dict[str, Any]) -> None:
        attributes = {"path": record["path"], "tag": self.resolve_tag(tag)}
        for name, gauge in self._gauges.items():
            gauge.set(record[name], attributes={**attributes, "unit": record[f"{name}_unit"]})
        self._percent.set(record["perc"], attributes=attributes)

    def shutdown(self) -> None:
        self._provider.shutdown()
        logger.info("OtelExporter shut down")
