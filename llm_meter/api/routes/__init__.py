from __future__ import annotations

from llm_meter.api.routes.health import router as health_router
from llm_meter.api.routes.tiers import router as tiers_router
from llm_meter.api.routes.usage import router as usage_router

__all__ = ["health_router", "tiers_router", "usage_router"]
