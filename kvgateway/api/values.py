"""
Values API Router
Aggregated reads and routed writes against the partitioned backend
"""

from fastapi import APIRouter, Depends, Response
from typing import List
import logging

from .schemas import KeyValuePair, RecordResponse, ErrorResponse
from .dependencies import get_read_aggregator, get_write_router
from ..core.routing import ReadAggregator, WriteRouter
from ..middleware.exceptions import OperationNotImplementedError, status_allows_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/values", tags=["values"])


@router.get(
    "",
    response_model=List[RecordResponse],
    summary="Read every key/value pair",
    responses={
        503: {"model": ErrorResponse, "description": "Partition directory unavailable"},
        502: {"model": ErrorResponse, "description": "A partition could not be reached"},
        504: {"model": ErrorResponse, "description": "A partition timed out"},
    }
)
async def get_values(
    aggregator: ReadAggregator = Depends(get_read_aggregator)
):
    """
    Read the records of every backend partition.

    Each value carries the id and kind of the partition it came from. If
    any partition fails, the whole read fails with that partition's status.
    """
    result = await aggregator.get_all()
    return result.to_list()


@router.put(
    "",
    summary="Write a key/value pair",
    responses={
        400: {"model": ErrorResponse, "description": "Key is empty or does not start with a letter"},
    }
)
async def put_value(
    pair: KeyValuePair,
    write_router: WriteRouter = Depends(get_write_router)
):
    """
    Route a write to the partition owning the key.

    The backend status code and body are returned unchanged.
    """
    result = await write_router.put(pair.key, pair.value)
    return Response(
        content=result.body if status_allows_body(result.status_code) else b"",
        status_code=result.status_code,
        media_type=result.content_type,
    )


@router.get(
    "/{item_id}",
    summary="Read a single key (not implemented)",
    responses={501: {"model": ErrorResponse}}
)
async def get_value(item_id: str):
    raise OperationNotImplementedError("get")


@router.delete(
    "/{item_id}",
    summary="Delete a single key (not implemented)",
    responses={501: {"model": ErrorResponse}}
)
async def delete_value(item_id: str):
    raise OperationNotImplementedError("delete")
