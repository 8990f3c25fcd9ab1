"""Campaign record shape handed to the persistence collaborator."""

from typing import Any

from pydantic import BaseModel, Field

from .character import Character
from .headquarters import Headquarters


class Campaign(BaseModel):
    """
    One stored campaign.

    The rules engine never loads or saves campaigns; this model only fixes the
    shape so records round-trip without renaming fields.
    """

    id: str = Field(..., description="Campaign identifier")
    user_id: str = Field(..., description="Owning user")
    character_data: Character
    headquarters_data: Headquarters
    journal_data: str = ""

    def to_record(self) -> dict[str, Any]:
        """Serialize with the nested aggregates' stored field names."""
        return self.model_dump(mode="json", by_alias=True)
