from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool
from pydantic import TypeAdapter, ValidationError

from llm_meter.adapters.store.base import AbstractTierRegistry
from llm_meter.api.routes.methods import reject_other_methods
from llm_meter.core.auth import require_credentials
from llm_meter.core.errors import ValidationAppError
from llm_meter.core.state import get_tier_registry
from llm_meter.schemas.tiers import TierLimits

router = APIRouter(tags=["Tiers"])

_tier_limits_adapter = TypeAdapter(TierLimits)


def parse_tier_limits(body: bytes) -> dict[str, int]:
    """Decode a JSON object of tier name to limit, keeping document order.

    Raises:
        ValidationAppError: If the body is not valid JSON of that shape.
    """
    try:
        return _tier_limits_adapter.validate_json(body)
    except ValidationError as exc:
        raise ValidationAppError(
            code="malformed_input",
            message="Request body is not a JSON object of tier names to non-negative integers",
            details={
                "errors": [
                    {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                    for err in exc.errors()
                ]
            },
        ) from exc


@router.get(
    "/tiers",
    response_model=TierLimits,
    dependencies=[Depends(require_credentials)],
)
def get_tiers(
    registry: Annotated[AbstractTierRegistry, Depends(get_tier_registry)],
) -> dict[str, int]:
    """Return every tier with its current limit.

    Reads are gated by the same credential as updates even though they don't
    change anything.
    """
    return registry.snapshot()


@router.post(
    "/tiers",
    response_class=Response,
    responses={400: {"description": "Malformed body or unknown tier"}},
    dependencies=[Depends(require_credentials)],
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": _tier_limits_adapter.json_schema()}},
        }
    },
)
async def update_tiers(
    request: Request,
    registry: Annotated[AbstractTierRegistry, Depends(get_tier_registry)],
) -> Response:
    """Set new limits for existing tiers.

    The body is read only after the credential check passed, so a bad
    credential is reported as 401 whatever the body holds. Pairs are applied
    in the order they appear in the JSON object. An unknown tier name stops
    processing with 400 ``invalid_tier``; limits already set by earlier pairs
    in the same body are kept.
    """
    changes = parse_tier_limits(await request.body())
    # bulk_update blocks on the registry lock; keep that off the event loop
    await run_in_threadpool(registry.bulk_update, changes)
    return Response(status_code=200)


reject_other_methods(router, "/tiers", ["GET", "POST"])
