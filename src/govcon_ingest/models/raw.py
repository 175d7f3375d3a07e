"""Raw record representation before normalization."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class RawRecord(BaseModel):
    """
    Opaque record from a source adapter for one partition.
    Adapters populate this from parsed API responses; it is never persisted.
    """

    model_config = ConfigDict(extra="allow")

    data: dict[str, Any] = Field(default_factory=dict)
    partition: Optional[str] = None
