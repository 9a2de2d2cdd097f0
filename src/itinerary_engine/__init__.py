"""Itinerary route optimization engine."""
