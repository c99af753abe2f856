"""Runtime context."""
