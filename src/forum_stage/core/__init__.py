"""Core configuration, identity, and ranking primitives."""
