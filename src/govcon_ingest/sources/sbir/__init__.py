"""SBIR.gov awards source."""

from .adapter import SbirAwardAdapter

__all__ = ["SbirAwardAdapter"]
