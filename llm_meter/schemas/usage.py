"""Pydantic schemas for usage counter responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CounterResponse(BaseModel):
    """Current value of the usage counter."""

    counter: int = Field(
        ...,
        ge=0,
        description="Authorized calls to POST /my-llm since start or last reset.",
    )
