"""
Rating writes and reads.

Every rating lives twice: as a row in the rating store and as a RATED edge
in the graph. Writes go row (flushed, uncommitted) -> edge -> commit ->
event, so an edge failure rolls the row back and the caller never sees
success. A failed event publish is reported but the writes stay.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import config, models
from ..database import get_db
from ..events import RatingEventProducer, get_event_producer
from ..exceptions import (
    GraphWriteError,
    MovieNotFoundError,
    RatingNotFoundError,
    UserNotFoundError,
    ValidationFailureError,
)
from ..graph import GraphStore, get_graph
from ..repositories import rating_repository
from ..repositories.graph_repository import GraphRepository, RatedEdge, to_datetime
from ..schemas import AverageRatingOut

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    checked: int = 0
    repaired: int = 0
    removed: int = 0


def validate_rating(score: int, comment: Optional[str], movie_id: Optional[str] = None) -> None:
    if movie_id is not None and not movie_id.strip():
        raise ValidationFailureError("Movie ID is required")
    if score is None or not (config.MIN_SCORE <= score <= config.MAX_SCORE):
        raise ValidationFailureError(
            f"Rating must be between {config.MIN_SCORE} and {config.MAX_SCORE}"
        )
    if comment is not None and len(comment) > config.MAX_COMMENT_LENGTH:
        raise ValidationFailureError(
            f"Comment must not exceed {config.MAX_COMMENT_LENGTH} characters"
        )


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value) -> Optional[datetime]:
    value = to_datetime(value)
    if value is None:
        return None
    # the rating store may hand back naive values; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _edge_matches(edge: RatedEdge, rating: models.Rating) -> bool:
    return (
        edge.rating == rating.rating
        and edge.comment == rating.comment
        and _as_utc(edge.timestamp) == _as_utc(rating.timestamp)
    )


def _detached_copy(rating: models.Rating) -> models.Rating:
    return models.Rating(
        id=rating.id,
        rating=rating.rating,
        comment=rating.comment,
        timestamp=rating.timestamp,
        user_id=rating.user_id,
        user_name=rating.user_name,
        movie_id=rating.movie_id,
        movie_title=rating.movie_title,
    )


class RatingService:
    def __init__(self, db: Session, graph: GraphRepository, events: RatingEventProducer):
        self.db = db
        self.graph = graph
        self.events = events

    def upsert_rating(
        self,
        email: str,
        movie_id: str,
        score: int,
        comment: Optional[str] = None,
    ) -> tuple[models.Rating, bool]:
        """
        Create the caller's rating for a movie, or overwrite it if one exists.

        Returns the persisted rating and whether it was newly created.
        """
        validate_rating(score, comment, movie_id)
        logger.info("upsert_rating called, email: '%s', movieId: '%s', rating: %d", email, movie_id, score)

        user = self.graph.find_user_by_email(email)
        if user is None:
            raise UserNotFoundError(email)
        movie = self.graph.find_movie(movie_id)
        if movie is None:
            raise MovieNotFoundError(movie_id)

        rating = rating_repository.find_by_user_and_movie(self.db, user.id, movie.id)
        created = rating is None
        if rating is None:
            rating = models.Rating(
                rating=score,
                comment=comment,
                timestamp=_now(),
                user_id=user.id,
                user_name=user.name,
                movie_id=movie.id,
                movie_title=movie.title,
            )
            self.db.add(rating)
            try:
                self.db.flush()
            except IntegrityError:
                # another request created the row between our lookup and insert
                self.db.rollback()
                logger.info("Concurrent rating for user '%s', movie '%s'; updating it instead", user.id, movie.id)
                rating = rating_repository.find_by_user_and_movie(self.db, user.id, movie.id)
                if rating is None:
                    raise
                created = False

        if not created:
            rating.rating = score
            rating.comment = comment
            rating.timestamp = _now()
            self.db.flush()

        self._write_through(rating)
        self.db.commit()
        self.db.refresh(rating)
        logger.info("Rating %s saved (created=%s)", rating.id, created)

        if created:
            self.events.publish_created(rating)
        else:
            self.events.publish_updated(rating)
        return rating, created

    def update_rating(self, rating_id: int, score: int, comment: Optional[str] = None) -> models.Rating:
        validate_rating(score, comment)
        rating = self.get_rating(rating_id)

        rating.rating = score
        rating.comment = comment
        rating.timestamp = _now()
        self.db.flush()

        self._write_through(rating)
        self.db.commit()
        self.db.refresh(rating)
        logger.info("Rating %s updated", rating.id)

        self.events.publish_updated(rating)
        return rating

    def delete_rating(self, rating_id: int) -> None:
        rating = self.get_rating(rating_id)
        deleted = _detached_copy(rating)

        try:
            self.graph.delete_rated_edge(rating.user_id, rating.movie_id)
        except Exception as e:
            logger.exception("RATED edge delete failed for rating %s", rating_id)
            raise GraphWriteError(f"Failed to delete graph edge for rating {rating_id}") from e

        self.db.delete(rating)
        self.db.commit()
        logger.info("Rating %s deleted", rating_id)

        self.events.publish_deleted(deleted)

    def get_rating(self, rating_id: int) -> models.Rating:
        rating = rating_repository.find_by_id(self.db, rating_id)
        if rating is None:
            raise RatingNotFoundError(rating_id)
        return rating

    def get_user_ratings(self, user_id: str, page: int, size: int, sort_by: str = "timestamp"):
        return rating_repository.page_by_user(self.db, user_id, page, size, sort_by)

    def get_movie_ratings(self, movie_id: str, page: int, size: int, sort_by: str = "rating"):
        return rating_repository.page_by_movie(self.db, movie_id, page, size, sort_by)

    def get_average_rating(self, movie_id: str) -> AverageRatingOut:
        average, count = rating_repository.average_for_movie(self.db, movie_id)
        return AverageRatingOut(movie_id=movie_id, average=average, count=count)

    def reconcile(self) -> ReconcileReport:
        """
        Read-repair: make the RATED edges match the rating rows.

        Rows win. Missing or stale edges are rewritten, edges without a row
        are removed.
        """
        report = ReconcileReport()
        edges = {(e.user_id, e.movie_id): e for e in self.graph.all_rated_edges()}

        for rating in rating_repository.find_all(self.db):
            report.checked += 1
            edge = edges.pop((rating.user_id, rating.movie_id), None)
            if edge is None or not _edge_matches(edge, rating):
                self.graph.save_rated_edge(
                    rating.user_id, rating.movie_id, rating.rating, rating.comment, rating.timestamp
                )
                report.repaired += 1

        for user_id, movie_id in edges:
            self.graph.delete_rated_edge(user_id, movie_id)
            report.removed += 1

        logger.info(
            "Reconciled %d ratings: %d edges repaired, %d orphan edges removed",
            report.checked, report.repaired, report.removed,
        )
        return report

    def _write_through(self, rating: models.Rating) -> None:
        try:
            self.graph.save_rated_edge(
                rating.user_id,
                rating.movie_id,
                rating.rating,
                rating.comment,
                rating.timestamp,
            )
        except Exception as e:
            logger.exception("RATED edge write failed for user '%s', movie '%s'", rating.user_id, rating.movie_id)
            self.db.rollback()
            raise GraphWriteError("Failed to write rating to the graph store") from e


def get_rating_service(
    db: Session = Depends(get_db),
    graph: GraphStore = Depends(get_graph),
    events: RatingEventProducer = Depends(get_event_producer),
) -> RatingService:
    return RatingService(db, GraphRepository(graph), events)
