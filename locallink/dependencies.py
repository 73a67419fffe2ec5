"""FastAPI dependencies: services from app.state and the caller's identity."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from locallink.schemas.user import CurrentUser
from locallink.services.cache import CatalogCache, ImageCache
from locallink.services.catalog_service import CatalogService
from locallink.services.review_store import ReviewStore


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service


def get_review_store(request: Request) -> ReviewStore:
    return request.app.state.review_store


def get_catalog_cache(request: Request) -> CatalogCache:
    return request.app.state.catalog_cache


def get_image_cache(request: Request) -> ImageCache:
    return request.app.state.image_cache


def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
    x_username: Optional[str] = Header(None, alias="X-Username"),
) -> Optional[CurrentUser]:
    """
    Identity forwarded by the auth gateway. The service trusts these headers;
    token verification happens upstream.
    """
    if not x_user_id or not x_user_id.strip():
        return None
    username = (x_username or "").strip() or x_user_id.strip()
    return CurrentUser(user_id=x_user_id.strip(), username=username)


def require_user(user: Optional[CurrentUser] = Depends(get_current_user)) -> CurrentUser:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Please log in.",
            headers={"X-Error-Code": "MISSING_USER_ID"},
        )
    return user
