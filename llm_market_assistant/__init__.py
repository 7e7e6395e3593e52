"""LLM Market Assistant - natural-language crypto market analysis.

This package combines:
- Symbol extraction from free-form chat text
- Concurrent market data and news sentiment aggregation
- A resilient OpenAI-compatible completion client
"""

__version__ = "0.1.0"

__all__ = [
    "api",
    "cli",
    "config",
    "core",
    "data",
    "infra",
    "storage",
]
