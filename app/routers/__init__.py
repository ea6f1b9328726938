"""API router package."""

from app.routers import auth, candidates, elections, feedback, results, votes

__all__ = [
    "auth",
    "candidates",
    "elections",
    "feedback",
    "results",
    "votes",
]
