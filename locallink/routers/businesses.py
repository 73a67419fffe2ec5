"""
Businesses router: the catalog itself.

Endpoints:
  GET /api/businesses          filtered, sorted catalog with review overlay
  GET /api/businesses/{id}     single business with provider detail enrichment
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError

from locallink.dependencies import get_catalog_service
from locallink.schemas.business import Business
from locallink.schemas.catalog import CatalogQuery, SortOption
from locallink.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/businesses", tags=["businesses"])


@router.get("", response_model=list[Business])
async def list_businesses(
    category: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    min_rating: Optional[float] = Query(None, alias="minRating"),
    has_deals: bool = Query(False, alias="hasDeals"),
    sort: SortOption = Query("relevance"),
    limit: Optional[int] = Query(None),
    service: CatalogService = Depends(get_catalog_service),
) -> list[Business]:
    try:
        query = CatalogQuery(
            category=category,
            tag=tag,
            search=search,
            min_rating=min_rating,
            has_deals=has_deals,
            sort=sort,
            limit=limit,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.errors(include_url=False, include_context=False),
        )

    businesses = await service.get_catalog(query)
    logger.info("Catalog request returned %d businesses", len(businesses))
    return businesses


@router.get("/{business_id}", response_model=Business)
async def get_business(
    business_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> Business:
    return await service.get_business(business_id)
