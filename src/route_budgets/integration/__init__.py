"""File-format integration."""
