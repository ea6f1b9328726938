"""Election schemas."""

from pydantic import BaseModel, ConfigDict, Field


class ElectionCreate(BaseModel):
    """Request body for creating an election."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=2000)


class ElectionToggle(BaseModel):
    """Request body for opening or closing an election."""

    model_config = ConfigDict(populate_by_name=True)

    election_id: str = Field(..., alias="electionId", min_length=1)
    is_open: bool = Field(..., alias="isOpen")
