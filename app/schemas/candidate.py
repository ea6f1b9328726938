"""Candidate schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CandidateStatus = Literal["active", "withdrawn"]


class CandidateCreate(BaseModel):
    """Request body for adding a candidate to an election."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=100)
    position: str = Field(..., min_length=1, max_length=100)
    manifesto: str = Field("", max_length=5000)
    photo_url: str | None = Field(None, alias="photoUrl", max_length=2000)
    election_id: str = Field(..., alias="electionId", min_length=1)


class CandidateUpdate(BaseModel):
    """Partial update of a candidate; omitted fields are left untouched."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(None, min_length=1, max_length=100)
    position: str | None = Field(None, min_length=1, max_length=100)
    manifesto: str | None = Field(None, max_length=5000)
    photo_url: str | None = Field(None, alias="photoUrl", max_length=2000)
    status: CandidateStatus | None = None
