"""Geocoding endpoints."""

from rotasmart.api.v1.geocoding.router import router

__all__ = ["router"]
