"""Pydantic types for the tier table payloads."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field, StrictInt

INT64_MAX = 2**63 - 1

# Strict so "100", 100.0 and true are rejected instead of coerced.
TierLimit = Annotated[
    StrictInt,
    Field(ge=0, le=INT64_MAX, description="Requests allowed per window (not enforced)."),
]

TierLimits = dict[str, TierLimit]
