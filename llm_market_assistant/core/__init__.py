"""Core pipeline: symbol extraction, market data, prompts and response assembly."""
