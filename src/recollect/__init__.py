"""recollect: incremental, LLM-decided long-term memory capture."""

__version__ = "0.1.0"
