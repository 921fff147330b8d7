from fastapi import APIRouter, Depends, Query

from .. import auth, config, schemas
from ..services.recommendation_service import (
    RecommendationService,
    get_recommendation_service,
    normalize_limit,
)

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.get("/personalized", response_model=schemas.RecommendationResponse)
def personalized(
    limit: int = Query(config.DEFAULT_RECOMMENDATION_LIMIT),
    email: str = Depends(auth.get_current_email),
    service: RecommendationService = Depends(get_recommendation_service),
):
    """
    Movies sharing actors or directors with what the caller rated highly.
    Falls back to trending for users with fewer than three ratings.
    """
    return service.get_personalized_recommendations(email, normalize_limit(limit))


@router.get("/trending", response_model=schemas.RecommendationResponse)
def trending(
    limit: int = Query(config.DEFAULT_RECOMMENDATION_LIMIT),
    service: RecommendationService = Depends(get_recommendation_service),
):
    return service.get_trending_recommendations(normalize_limit(limit))
