"""Bank persistence and editing."""
