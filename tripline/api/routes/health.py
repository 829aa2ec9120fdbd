"""Health check endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from tripline.api.deps import get_segment_service
from tripline.config import get_settings
from tripline.services.segments import SegmentService

router = APIRouter()


@router.get("/health")
async def health(
    service: Annotated[SegmentService, Depends(get_segment_service)],
) -> dict[str, str]:
    """Health check that also touches the store.

    Returns:
        200 with the storage backend in use
    """
    service.list_itineraries(limit=1)
    return {"status": "ok", "storage": get_settings().storage_backend}
