"""Shared helpers: configuration, logging, file output and timing."""
