"""
Personalized recommendations from two graph traversals (liked actors,
liked directors), merged into one ranked list. Users with too few ratings
get the trending list instead.
"""

import logging
from typing import Optional

from fastapi import Depends

from .. import config
from ..graph import GraphStore, get_graph
from ..repositories.graph_repository import GraphMovie
from ..repositories.recommendation_repository import RecommendationRepository
from ..schemas import MovieRecommendation, RecommendationResponse

logger = logging.getLogger(__name__)

ACTOR_REASON = "Because you liked movies with these actors"
DIRECTOR_REASON = "Because you liked movies directed by these directors"
ACTOR_AND_DIRECTOR_REASON = "Because you liked movies with these actors and directors"
TRENDING_REASON = "Trending now"

ACTOR_SCORE = 0.8
DIRECTOR_SCORE = 0.7
ACTOR_AND_DIRECTOR_SCORE = 1.0
TRENDING_SCORE = 0.5


def normalize_limit(limit: Optional[int]) -> int:
    """Out-of-range limits fall back to the default rather than failing."""
    if limit is None or limit < 1 or limit > config.MAX_RECOMMENDATION_LIMIT:
        return config.DEFAULT_RECOMMENDATION_LIMIT
    return limit


def to_recommendation(movie: GraphMovie, reason: str, score: float) -> MovieRecommendation:
    return MovieRecommendation(
        id=movie.id,
        title=movie.title,
        released_year=movie.released,
        tagline=movie.tagline,
        reason=reason,
        score=score,
    )


def merge_candidates(
    actor_based: list[GraphMovie],
    director_based: list[GraphMovie],
    limit: int,
) -> list[MovieRecommendation]:
    """
    Merge both candidate lists into one deduplicated ranking.

    Actor matches go in first at 0.8. A director match on a movie already
    present is upgraded to 1.0; a new one goes in at 0.7. The final sort is
    stable, so equal scores keep their insertion order.
    """
    merged: dict[str, MovieRecommendation] = {}

    for movie in actor_based:
        if movie.id not in merged:
            merged[movie.id] = to_recommendation(movie, ACTOR_REASON, ACTOR_SCORE)

    actor_ids = set(merged)
    for movie in director_based:
        existing = merged.get(movie.id)
        if existing is None:
            merged[movie.id] = to_recommendation(movie, DIRECTOR_REASON, DIRECTOR_SCORE)
        elif movie.id in actor_ids:
            existing.score = ACTOR_AND_DIRECTOR_SCORE
            existing.reason = ACTOR_AND_DIRECTOR_REASON

    ranked = sorted(merged.values(), key=lambda rec: rec.score, reverse=True)
    return ranked[:limit]


class RecommendationService:
    def __init__(self, repository: RecommendationRepository):
        self.repository = repository

    def get_personalized_recommendations(self, email: str, limit: int) -> RecommendationResponse:
        logger.info("Getting personalized recommendations for user: %s, limit: %d", email, limit)

        rating_count = self.repository.count_user_ratings(email)
        logger.info("User %s has %s ratings", email, rating_count)

        if rating_count is None or rating_count < config.COLD_START_MIN_RATINGS:
            logger.info("User %s has insufficient ratings, returning trending movies", email)
            return self.get_trending_recommendations(limit)

        actor_based = self.repository.find_movies_by_liked_actors(email, config.MIN_LIKED_RATING, limit)
        logger.info("Found %d actor-based recommendations for user %s", len(actor_based), email)

        director_based = self.repository.find_movies_by_liked_directors(email, config.MIN_LIKED_RATING, limit)
        logger.info("Found %d director-based recommendations for user %s", len(director_based), email)

        movies = merge_candidates(actor_based, director_based, limit)
        logger.info("Returning %d merged recommendations for user %s", len(movies), email)
        return RecommendationResponse(movies=movies)

    def get_trending_recommendations(self, limit: int) -> RecommendationResponse:
        logger.info("Getting trending movies, limit: %d", limit)
        trending = self.repository.find_trending_movies(limit)
        return RecommendationResponse(
            movies=[to_recommendation(movie, TRENDING_REASON, TRENDING_SCORE) for movie in trending]
        )


def get_recommendation_service(graph: GraphStore = Depends(get_graph)) -> RecommendationService:
    return RecommendationService(RecommendationRepository(graph))
