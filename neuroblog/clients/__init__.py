"""Clients for external news, image and text generation services."""
