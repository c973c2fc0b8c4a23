"""
Allow-list routes.

The email check is the only gate in front of the app. It fails closed:
an error surfaces as a 500, never as an authorized answer.
"""

import structlog
from fastapi import APIRouter, Depends

from expense_tracker.api.dependencies import get_allow_list
from expense_tracker.api.schemas import EmailRequest
from expense_tracker.auth import EmailAllowList


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/check-authorization")
async def check_authorization(
    body: EmailRequest,
    allow_list: EmailAllowList = Depends(get_allow_list),
) -> dict:
    authorized = allow_list.is_authorized(body.email)
    if not authorized:
        logger.info("authorization_denied")
    return {"authorized": authorized}


@router.get("/authorized-emails")
async def authorized_emails(
    allow_list: EmailAllowList = Depends(get_allow_list),
) -> dict:
    return {"emails": allow_list.emails}


@router.post("/add-email")
async def add_email(
    body: EmailRequest,
    allow_list: EmailAllowList = Depends(get_allow_list),
) -> dict:
    if allow_list.add(body.email):
        logger.info("allow_list_email_added", count=len(allow_list))
    return {"message": "Email added", "emails": allow_list.emails}


@router.delete("/remove-email")
async def remove_email(
    body: EmailRequest,
    allow_list: EmailAllowList = Depends(get_allow_list),
) -> dict:
    if allow_list.remove(body.email):
        logger.info("allow_list_email_removed", count=len(allow_list))
    return {"message": "Email removed", "emails": allow_list.emails}
