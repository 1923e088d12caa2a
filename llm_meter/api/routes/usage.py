from typing import Annotated

from fastapi import APIRouter, Depends, Response

from llm_meter.adapters.store.base import AbstractUsageCounter
from llm_meter.api.routes.methods import reject_other_methods
from llm_meter.core.auth import require_credentials, require_credentials_for_counter_read
from llm_meter.core.state import get_usage_counter
from llm_meter.schemas.usage import CounterResponse

router = APIRouter(tags=["Usage"])


@router.get(
    "/my-llm",
    response_model=CounterResponse,
    dependencies=[Depends(require_credentials_for_counter_read)],
)
def read_counter(
    counter: Annotated[AbstractUsageCounter, Depends(get_usage_counter)],
) -> CounterResponse:
    """Return the usage counter.

    Open to anonymous callers unless AUTH_COUNTER_READ_REQUIRES_AUTH is set.
    Increments still waiting on the counter lock may not be reflected yet.
    """
    return CounterResponse(counter=counter.read())


@router.post("/my-llm", response_class=Response, dependencies=[Depends(require_credentials)])
def record_call(
    counter: Annotated[AbstractUsageCounter, Depends(get_usage_counter)],
) -> Response:
    """Count one call."""
    counter.increment()
    return Response(status_code=200)


@router.post(
    "/my-llm/reset",
    response_class=Response,
    dependencies=[Depends(require_credentials)],
)
def reset_counter(
    counter: Annotated[AbstractUsageCounter, Depends(get_usage_counter)],
) -> Response:
    counter.reset()
    return Response(status_code=200)


reject_other_methods(router, "/my-llm", ["GET", "POST"])
reject_other_methods(router, "/my-llm/reset", ["POST"])
