"""Settings, logging, errors and time helpers."""
