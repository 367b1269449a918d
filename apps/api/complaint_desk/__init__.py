"""Student complaint desk API."""
