"""Routing backend adapters (Google, Mapbox, OSRM) behind one interface."""

from .base import HttpProviderAdapter, ProviderAdapter
from .factory import get_provider_adapter

__all__ = ["get_provider_adapter", "HttpProviderAdapter", "ProviderAdapter"]
