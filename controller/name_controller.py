# controller/name_controller.py
import logging
import threading
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse

from controller.controller_dependencies import get_allocation_lock, get_allocation_store
from model.api import ErrorResponse, GenerateResponse, StatsResponse
from service.allocation_service import AllocationStore
from util.constants import InternalURIs
from util.errors import AppError

logger = logging.getLogger(__name__)

NO_STORE = {"Cache-Control": "no-store"}

name_router = APIRouter()


def _parse_count(raw: Optional[str]) -> int:
    try:
        return int((raw or "").strip())
    except ValueError:
        return 0


def _check_request(store: AllocationStore, count: int) -> None:
    if not store.ready:
        reason = store.last_error.message if store.last_error else "not initialized"
        raise AppError(
            f"history store unavailable: {reason}",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    remaining = store.remaining()
    if count <= 0 or count > remaining:
        raise AppError(f"count must be an integer between 1 and {remaining}")


@name_router.get(
    InternalURIs.GENERATE,
    response_model=GenerateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def generate(
    count: Optional[str] = Query(default=None),
    store: AllocationStore = Depends(get_allocation_store),
    lock: threading.Lock = Depends(get_allocation_lock),
):
    n = _parse_count(count)
    with lock:
        _check_request(store, n)
        names = store.allocate(n)
    logger.info("api.generate.ok count=%d", len(names))
    return JSONResponse(
        content=GenerateResponse(names=names).model_dump(), headers=NO_STORE
    )


@name_router.head(InternalURIs.GENERATE)
def generate_head(
    count: Optional[str] = Query(default=None),
    store: AllocationStore = Depends(get_allocation_store),
) -> Response:
    # Validates like GET but never consumes names.
    _check_request(store, _parse_count(count))
    return Response(
        status_code=status.HTTP_200_OK, media_type="application/json", headers=NO_STORE
    )


@name_router.get(InternalURIs.STATS, response_model=StatsResponse)
def stats(store: AllocationStore = Depends(get_allocation_store)) -> StatsResponse:
    return StatsResponse(
        total=store.total_capacity(), remaining=store.remaining(), ready=store.ready
    )
