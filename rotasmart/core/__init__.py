"""Core configuration, logging and geocoding engine."""
