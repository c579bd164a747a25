"""Day-trip planning: rank nearby places and schedule them into an itinerary."""

__version__ = "0.1.0"
