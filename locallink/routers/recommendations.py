"""
Recommendations router: personalised picks from a favorites set.

POST /api/recommendations
  body: {"favoriteIds": [...], "preferredCategories": [...], "debug": false}
  returns the top 4 businesses, or with debug=true the category scores,
  favorite count and up to 20 scored businesses with their breakdown.
"""

from __future__ import annotations

import logging
from typing import Union

from fastapi import APIRouter, Depends

from locallink.dependencies import get_catalog_service
from locallink.schemas.business import RecommendedBusiness
from locallink.schemas.catalog import RecommendationDebug, RecommendationRequest
from locallink.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recommendations", tags=["recommendations"])


@router.post("", response_model=Union[RecommendationDebug, list[RecommendedBusiness]])
async def recommend(
    body: RecommendationRequest,
    service: CatalogService = Depends(get_catalog_service),
) -> Union[RecommendationDebug, list[RecommendedBusiness]]:
    result = await service.recommend(body)
    logger.info(
        "Recommendations: %d favorites → %d results",
        len(body.favorite_ids),
        len(result.recommendations),
    )
    if body.debug:
        return RecommendationDebug(
            category_scores=result.category_scores,
            favorite_count=len(body.favorite_ids),
            recommendations=result.recommendations,
        )
    return result.recommendations
