from fastapi import APIRouter, Depends

from expense_tracker.api.dependencies import get_storage_handle
from expense_tracker.models import utc_now
from expense_tracker.services.storage import StorageHandle


router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health(handle: StorageHandle = Depends(get_storage_handle)) -> dict:
    return {
        "status": "ok",
        "timestamp": utc_now().isoformat(),
        "storage": handle.kind.value,
    }
