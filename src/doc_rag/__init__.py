"""Document question answering: ingestion, retrieval, and a tool-calling chat loop."""

__version__ = "0.1.0"
