"""Construction-time configuration constants."""
