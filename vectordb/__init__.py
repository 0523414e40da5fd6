"""In-memory vector database with HNSW search, JSON persistence and an HTTP/WebSocket API."""

__version__ = "0.1.0"

__all__ = ["__version__"]