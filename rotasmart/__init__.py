"""RotaSmart address geocoding and reconciliation service."""
