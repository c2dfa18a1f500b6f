"""Taskhub: project, task and comment tracking API for client work."""

__version__ = "0.1.0"
