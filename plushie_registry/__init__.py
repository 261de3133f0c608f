"""Plushie registry client: image normalization, backend gateways and app state."""

__version__ = "0.1.0"
