"""Greeting message generator: prompt-to-template matching with storage."""

__version__ = "0.1.0"
