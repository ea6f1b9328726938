"""Feedback schemas."""

from pydantic import BaseModel, field_validator

MAX_FEEDBACK_LENGTH = 500


class FeedbackCreate(BaseModel):
    """Request body for submitting feedback."""

    message: str

    @field_validator("message")
    @classmethod
    def strip_message(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Feedback message is required")
        if len(value) > MAX_FEEDBACK_LENGTH:
            raise ValueError(f"Feedback message must be at most {MAX_FEEDBACK_LENGTH} characters")
        return value
