"""Semantic search over a shared document folder."""
