"""
Ingestion — text extraction, chunking, embedding, and persistence.

This module turns uploaded files and fetched web pages into embedded
chunks stored in the knowledge store (see :mod:`doc_rag.retrieval`).
"""
