"""SAM.gov opportunities source."""

from .adapter import SamOpportunityAdapter

__all__ = ["SamOpportunityAdapter"]
