"""Tests for the OpenTelemetry adapter."""

from azure_blob_adapter.infrastructure.telemetry.otel_adapter import (
    NoopTelemetry,
    OpenTelemetryAdapter,
    OtelConfig,
)


def test_adapter_records_without_exporter():
    adapter = OpenTelemetryAdapter(OtelConfig(environment="test"))

    adapter.incr("blob.move.total", {"status": "success"})
    adapter.incr("blob.move.total", {"status": "success"})
    adapter.observe("blob.move.metadata_bytes", 128)

    assert set(adapter._counters) == {"blob.move.total"}
    assert set(adapter._histograms) == {"blob.move.metadata_bytes"}


def test_broken_meter_degrades_to_noop():
    adapter = OpenTelemetryAdapter(OtelConfig())

    class BrokenMeter:
        def create_counter(self, **kwargs):
            raise RuntimeError("meter gone")

    adapter._meter = BrokenMeter()

    adapter.incr("blob.list.pages")  # must not raise


def test_noop_telemetry_accepts_calls():
    noop = NoopTelemetry()
    noop.incr("x")
    noop.observe("y", 1.0, {"a": "b"})
