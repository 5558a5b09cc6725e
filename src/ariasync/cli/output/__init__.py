"""Terminal rendering for CLI commands."""
