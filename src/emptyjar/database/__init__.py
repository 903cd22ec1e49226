"""Local device database."""
