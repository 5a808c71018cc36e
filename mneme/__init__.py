"""Long-term memory layer for AI agents: event vocabulary, interfaces and evolution."""

__version__ = "0.1.0"