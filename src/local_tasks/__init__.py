"""Local task records with validated CRUD, queries and key-value persistence."""

__version__ = "0.1.0"
