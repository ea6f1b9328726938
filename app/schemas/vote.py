"""Ballot schemas."""

from pydantic import BaseModel, ConfigDict, Field


class VoteCast(BaseModel):
    """Request body for casting a ballot."""

    model_config = ConfigDict(populate_by_name=True)

    candidate_id: str = Field(..., alias="candidateId", min_length=1)
    election_id: str = Field(..., alias="electionId", min_length=1)


class VoteChange(BaseModel):
    """Request body for moving a ballot to another candidate."""

    model_config = ConfigDict(populate_by_name=True)

    new_candidate_id: str = Field(..., alias="newCandidateId", min_length=1)
    election_id: str = Field(..., alias="electionId", min_length=1)


class VoteWithdraw(BaseModel):
    """Request body for withdrawing a ballot."""

    model_config = ConfigDict(populate_by_name=True)

    election_id: str = Field(..., alias="electionId", min_length=1)
