"""
Back-office access.

The upstream auth provider signs the caller in and forwards the verified
email in the X-User-Email header. The allow-list below is the only place
admin access is decided.
"""
from typing import Optional

from fastapi import Header, HTTPException

from config import admin_emails


def is_admin(email: Optional[str]) -> bool:
    if not email:
        return False
    return email.strip().lower() in admin_emails()


def require_admin(x_user_email: Optional[str] = Header(None)) -> str:
    if not x_user_email:
        raise HTTPException(status_code=401, detail="Not authenticated")
    if not is_admin(x_user_email):
        raise HTTPException(status_code=403, detail="Access denied: this email is not authorized")
    return x_user_email.strip().lower()
