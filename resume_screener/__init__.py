"""Resume screening core: application lifecycle, LLM screening, cache coherency."""

__version__ = "0.1.0"
