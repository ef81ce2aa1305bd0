"""MRO operations assistant: document ingestion and operational Q&A service."""

__version__ = "0.1.0"
