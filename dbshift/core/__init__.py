"""Core models, interfaces and configuration for dbshift."""
