"""Helpers for working with the caller's bearer token."""

from __future__ import annotations

from typing import Dict, Optional

from fastapi import HTTPException


def extract_bearer_token(header_value: Optional[str]) -> str:
    """Return the Bearer token from an Authorization header."""

    if not header_value:
        raise HTTPException(status_code=401, detail="Authentication required.")
    parts = header_value.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid Bearer token.")
    token = parts[1].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing Bearer token.")
    return token


def build_auth_headers(access_token: Optional[str]) -> Dict[str, str]:
    """Headers forwarded to the order API on behalf of the caller."""

    return {
        "Authorization": f"Bearer {access_token}" if access_token else "",
        "Content-Type": "application/json",
    }


__all__ = ["build_auth_headers", "extract_bearer_token"]
