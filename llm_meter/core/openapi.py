"""OpenAPI customization.

FastAPI already publishes the HTTP Basic security scheme through the
``HTTPBasic`` dependency. This adds tag metadata and marks the open endpoints
(health, and the counter read unless it is configured as gated) with
``security: []`` so generated clients don't send credentials there.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "Tiers", "description": "Read and update per-tier rate-limit values."},
    {"name": "Usage", "description": "Usage counter: increment, read and reset."},
    {"name": "Health", "description": "Liveness checks."},
]


def apply_openapi_customizations(app: FastAPI, *, counter_read_open: bool = True) -> None:
    """Patch the app's OpenAPI generation with tags and open-endpoint overrides."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing = {t.get("name") for t in tags}
        tags.extend(t for t in TAGS_METADATA if t["name"] not in existing)

        paths = schema.get("paths", {})
        open_operations = [("/health", "get")]
        if counter_read_open:
            open_operations.append(("/my-llm", "get"))
        for path, method in open_operations:
            operation = paths.get(path, {}).get(method)
            if isinstance(operation, dict):
                operation["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
