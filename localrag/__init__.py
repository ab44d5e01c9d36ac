"""Local-first document retrieval and question answering."""

__version__ = "0.1.0"
