from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    UniqueConstraint,
)

from .database import Base


class Rating(Base):
    """
    One row per (user, movie) rating.

    user/movie names are copied in so listings never need the graph store.
    The row is mirrored by a RATED edge carrying rating/comment/timestamp.
    """

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "movie_id", name="uq_ratings_user_movie"),
    )

    id = Column(Integer, primary_key=True, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(String(500))
    timestamp = Column(DateTime(timezone=True), nullable=False)

    user_id = Column(String(255), nullable=False, index=True)
    user_name = Column(String(255))
    movie_id = Column(String(255), nullable=False, index=True)
    movie_title = Column(String)
