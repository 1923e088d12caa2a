"""Per-application shared state and the dependencies that hand it to routes.

The tier registry, usage counter and access gate are built once by the app
factory and kept on ``app.state``; routes receive them through ``Depends``
instead of reaching for module globals.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request

from llm_meter.adapters.store.base import AbstractTierRegistry, AbstractUsageCounter
from llm_meter.adapters.store.in_memory import InMemoryTierRegistry, InMemoryUsageCounter
from llm_meter.core.auth import AccessGate
from llm_meter.core.config import Settings

logger = logging.getLogger(__name__)


def init_state(app: FastAPI, cfg: Settings) -> None:
    """Create the stores and the access gate for ``app``.

    Args:
        app: Application to attach state to.
        cfg: Settings providing the seed tiers and the shared credential.
    """

    app.state.settings = cfg
    app.state.tier_registry = InMemoryTierRegistry(cfg.app.initial_tiers)
    app.state.usage_counter = InMemoryUsageCounter()
    app.state.access_gate = AccessGate(cfg.auth.username, cfg.auth.password)

    logger.info(
        "state.initialized",
        extra={
            "tiers": sorted(cfg.app.initial_tiers),
            "counter_read_requires_auth": cfg.auth.counter_read_requires_auth,
        },
    )


def get_tier_registry(request: Request) -> AbstractTierRegistry:
    return request.app.state.tier_registry


def get_usage_counter(request: Request) -> AbstractUsageCounter:
    return request.app.state.usage_counter
