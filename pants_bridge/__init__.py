"""Pants Bridge: compile with Pants from an IDE and run with its exported classpath."""

__version__ = "0.1.0"
