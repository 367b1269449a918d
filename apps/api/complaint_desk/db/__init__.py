"""Database models, enums and session."""
