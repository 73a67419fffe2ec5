"""Catalog summaries: trending picks, tag cloud, analytics and cache statistics."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from locallink.dependencies import get_catalog_cache, get_catalog_service, get_image_cache
from locallink.schemas.business import Business
from locallink.schemas.catalog import AnalyticsSummary, CacheStats, TagCount
from locallink.services.cache import CatalogCache, ImageCache
from locallink.services.catalog_service import CatalogService

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/trending", response_model=list[Business])
async def trending(service: CatalogService = Depends(get_catalog_service)) -> list[Business]:
    return await service.trending()


@router.get("/tags", response_model=list[TagCount])
async def tags(service: CatalogService = Depends(get_catalog_service)) -> list[TagCount]:
    """Tags used by at least two businesses, most common first."""
    return await service.tags()


@router.get("/analytics", response_model=AnalyticsSummary)
async def analytics(service: CatalogService = Depends(get_catalog_service)) -> AnalyticsSummary:
    return await service.analytics()


@router.get("/cache/stats")
async def cache_stats(
    catalog_cache: CatalogCache = Depends(get_catalog_cache),
    image_cache: ImageCache = Depends(get_image_cache),
) -> dict[str, CacheStats]:
    return {"catalog": catalog_cache.stats(), "images": image_cache.stats()}
