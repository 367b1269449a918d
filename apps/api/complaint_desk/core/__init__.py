"""Configuration, security and request dependencies."""
