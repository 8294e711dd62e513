"""Core suggestion pipeline components."""
