"""File-backed JSON object storage with key-prefix watches and configuration scan summaries."""

__version__ = "0.1.0"

__all__ = ["configsummary", "errors", "registry", "serializer", "storage", "watch"]