"""Admin view of the allow-list, shaped as a user listing."""

import structlog
from fastapi import APIRouter, Depends

from expense_tracker.api.dependencies import get_allow_list
from expense_tracker.api.schemas import EmailRequest
from expense_tracker.auth import EmailAllowList, normalize_email


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/users")
async def list_users(allow_list: EmailAllowList = Depends(get_allow_list)) -> list[dict]:
    return [{"email": email, "authorized": True} for email in allow_list.emails]


@router.post("/users")
async def add_user(
    body: EmailRequest,
    allow_list: EmailAllowList = Depends(get_allow_list),
) -> dict:
    if allow_list.add(body.email):
        logger.info("allow_list_email_added", count=len(allow_list))
    return {"message": "User added", "email": normalize_email(body.email)}


@router.delete("/users/{email}")
async def remove_user(
    email: str,
    allow_list: EmailAllowList = Depends(get_allow_list),
) -> dict:
    if allow_list.remove(email):
        logger.info("allow_list_email_removed", count=len(allow_list))
    return {"message": "User removed"}
