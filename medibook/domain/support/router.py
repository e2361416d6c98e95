"""Support router - contact form intake"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator

from ...rate_limiter import create_rate_limiter
from ...security_utils import sanitize_text
from ...shared.responses import success_response
from ...shared.validators import validate_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/support", tags=["Support"])

contact_rate_limiter = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="support_contact")


class ContactRequest(BaseModel):
    """Required fields are checked in the handler to answer with one message"""

    name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=30)
    subject: Optional[str] = Field(default=None, max_length=200)
    department: Optional[str] = Field(default=None, max_length=50)
    message: Optional[str] = Field(default=None, max_length=5000)

    @field_validator("name", "subject", "department", "message")
    @classmethod
    def clean_text(cls, v):
        return sanitize_text(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


@router.post("/contact", dependencies=[Depends(contact_rate_limiter)])
async def submit_contact(data: ContactRequest):
    if not data.name or not data.email or not data.subject or not data.message:
        raise HTTPException(status_code=400, detail="Missing required fields")

    logger.info(
        f"📩 Support request from {data.name} <{data.email}> "
        f"[{data.department or 'general'}]: {data.subject}"
    )
    return success_response(message="Your message has been received. We'll get back to you soon.")
