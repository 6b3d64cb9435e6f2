"""Activity logging package."""

from cabledger.activity.logger import ActivityLogger

__all__ = ["ActivityLogger"]
