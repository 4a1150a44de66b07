"""
Routing table domain models.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")


class OfficeRecord(BaseModel):
    """One row of the routing table.

    Serialized as ``{"destination": "+1555...", "officeName": "North Office"}``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    destination: str = Field(..., description="E.164 number the call is bridged to")
    office_name: str = Field(
        ...,
        alias="officeName",
        min_length=1,
        description="Human-readable office name spoken in the whisper",
    )

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if not E164_PATTERN.match(v):
            raise ValueError(f"destination must be E.164, got {v!r}")
        return v
