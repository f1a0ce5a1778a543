"""knowledge-store - local knowledge items with ranked full-text search."""

# Package version - updated by release automation
__version__ = "0.3.0"
