"""Prometheus exporter helpers."""

from __future__ import annotations

from prometheus_client import Counter


image_normalizations_total = Counter(
    "image_normalizations_total",
    "Total number of images passed through the upload normaliser.",
    ["outcome"],
)

gateway_requests_total = Counter(
    "gateway_requests_total",
    "Total number of backend requests issued by the client.",
    ["backend", "outcome"],
)
