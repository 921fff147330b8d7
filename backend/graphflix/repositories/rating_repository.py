from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models

SORTABLE_FIELDS = {
    "timestamp": models.Rating.timestamp,
    "rating": models.Rating.rating,
    "id": models.Rating.id,
}


@dataclass
class Page:
    content: list
    total_elements: int
    total_pages: int
    page_number: int
    page_size: int
    first: bool
    last: bool


def find_by_id(db: Session, rating_id: int) -> Optional[models.Rating]:
    return db.query(models.Rating).filter(models.Rating.id == rating_id).first()


def find_by_user_and_movie(db: Session, user_id: str, movie_id: str) -> Optional[models.Rating]:
    return (
        db.query(models.Rating)
        .filter(
            models.Rating.user_id == user_id,
            models.Rating.movie_id == movie_id,
        )
        .first()
    )


def find_all(db: Session) -> list[models.Rating]:
    return db.query(models.Rating).all()


def average_for_movie(db: Session, movie_id: str) -> tuple[float, int]:
    """(mean, count) over a movie's ratings; (0.0, 0) when there are none."""
    avg, count = (
        db.query(func.avg(models.Rating.rating), func.count(models.Rating.id))
        .filter(models.Rating.movie_id == movie_id)
        .one()
    )
    if not count:
        return 0.0, 0
    return float(avg), int(count)


def page_by_user(db: Session, user_id: str, page: int, size: int, sort_by: str = "timestamp") -> Page:
    query = db.query(models.Rating).filter(models.Rating.user_id == user_id)
    return _paginate(query, page, size, sort_by)


def page_by_movie(db: Session, movie_id: str, page: int, size: int, sort_by: str = "rating") -> Page:
    query = db.query(models.Rating).filter(models.Rating.movie_id == movie_id)
    return _paginate(query, page, size, sort_by)


def _paginate(query, page: int, size: int, sort_by: str) -> Page:
    column = SORTABLE_FIELDS.get(sort_by, models.Rating.timestamp)
    total = query.count()
    content = (
        query.order_by(column.desc(), models.Rating.id.desc())
        .offset(page * size)
        .limit(size)
        .all()
    )
    total_pages = (total + size - 1) // size if size else 0
    return Page(
        content=content,
        total_elements=total,
        total_pages=total_pages,
        page_number=page,
        page_size=size,
        first=page == 0,
        last=page >= total_pages - 1,
    )
