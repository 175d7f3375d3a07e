"""USAspending.gov awards source."""

from .adapter import UsaSpendingAwardAdapter

__all__ = ["UsaSpendingAwardAdapter"]
