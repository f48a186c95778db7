"""HTTP API for the forum application."""
