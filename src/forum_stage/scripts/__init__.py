"""Operational scripts for the forum application."""
