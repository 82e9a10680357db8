"""Record sink endpoints: append and list budget allocations."""

from __future__ import annotations

import logging
import sqlite3

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from budgetmap.api.models import AllocationCreated, AllocationIn, AllocationList, ErrorOut
from budgetmap.api.storage import AllocationStorage
from budgetmap.common.logging import get_logger, log_event
from budgetmap.common.time_utils import utc_timestamp_iso

logger = get_logger(__name__)

router = APIRouter(prefix="/budget-allocations", tags=["allocations"])


def get_storage(request: Request) -> AllocationStorage:
    return request.app.state.storage


def _error(message: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorOut(message=message, error=str(exc)).model_dump(),
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=AllocationCreated,
    responses={500: {"model": ErrorOut}},
    summary="Store a budget allocation",
)
def create_allocation(
    allocation: AllocationIn,
    request: Request,
    storage: AllocationStorage = Depends(get_storage),
):
    received_at = utc_timestamp_iso()
    document = {
        **allocation.model_dump(exclude_none=True),
        "timestamp": received_at,
        "userInfo": {
            "ipAddress": request.client.host if request.client else None,
            "userAgent": request.headers.get("user-agent"),
        },
    }
    try:
        record_id = storage.append(document, received_at=received_at)
    except sqlite3.Error as exc:
        log_event(
            logger,
            f"error storing budget allocation: {exc}",
            level=logging.ERROR,
            stage="sink",
            event="ALLOCATION_STORE_FAILED",
            status="error",
            error_code="STORAGE_ERROR",
        )
        return _error("Error storing budget allocation", exc)

    log_event(logger, f"budget allocation stored with id {record_id}", stage="sink", event="ALLOCATION_STORED", status="ok")
    return AllocationCreated(id=record_id, message="Budget allocation stored successfully")


@router.get(
    "",
    response_model=AllocationList,
    responses={500: {"model": ErrorOut}},
    summary="List the most recent budget allocations, newest first",
)
def list_allocations(request: Request, storage: AllocationStorage = Depends(get_storage)):
    try:
        documents = storage.recent(limit=request.app.state.list_limit)
    except sqlite3.Error as exc:
        log_event(
            logger,
            f"error fetching budget allocations: {exc}",
            level=logging.ERROR,
            stage="sink",
            event="ALLOCATION_LIST_FAILED",
            status="error",
            error_code="STORAGE_ERROR",
        )
        return _error("Error fetching budget allocations", exc)
    return AllocationList(count=len(documents), data=documents)
