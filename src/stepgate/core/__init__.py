"""Core configuration, protocols, errors and helpers."""
