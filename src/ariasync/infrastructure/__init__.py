"""Infrastructure - logging and HTTP transport helpers."""
