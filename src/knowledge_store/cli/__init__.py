"""CLI tools for knowledge-store."""
