"""Ingestion layer.

Adapters that move packets into the store (replay), capture them
(recorder) and sample their rates, plus the normalization helpers the
models validate with.
"""

__all__: list[str] = []
