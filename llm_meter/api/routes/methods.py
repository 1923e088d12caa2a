"""Explicit 405 responses for unsupported methods on known paths."""

from __future__ import annotations

from fastapi import APIRouter, Request

from llm_meter.core.errors import MethodNotAllowedAppError

ALL_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


def reject_other_methods(router: APIRouter, path: str, allowed: list[str]) -> None:
    """Register a catch-all route answering 405 for methods not in ``allowed``.

    Without it the router only reports the methods of the first route that
    matched the path in its ``Allow`` header.
    """

    rejected = [m for m in ALL_METHODS if m not in allowed]

    async def method_not_allowed(request: Request) -> None:
        raise MethodNotAllowedAppError(
            code="method_not_allowed",
            message="Method not allowed",
            details={"method": request.method, "allowed_methods": list(allowed)},
        )

    router.add_api_route(
        path,
        method_not_allowed,
        methods=rejected,
        include_in_schema=False,
        name=f"reject_methods:{path}",
    )
