"""Recurring generation scheduling."""

from neuroblog.scheduler.scheduler import AutoGenerationScheduler

__all__ = ["AutoGenerationScheduler"]
