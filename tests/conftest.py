import os
import sys
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure the package under test is importable without installation
PROJECT_ROOT = Path(__file__).resolve().parents[1]
BACKEND_PATH = PROJECT_ROOT / "backend"
if str(BACKEND_PATH) not in sys.path:
    sys.path.insert(0, str(BACKEND_PATH))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("KAFKA_BOOTSTRAP_SERVERS", "")

from graphflix import models  # noqa: E402
from graphflix.database import Base  # noqa: E402
from graphflix.events import EventPublisher, RatingEventProducer  # noqa: E402
from graphflix.repositories.graph_repository import GraphMovie, GraphUser, RatedEdge  # noqa: E402
from graphflix.services.rating_service import RatingService  # noqa: E402


class RecordingPublisher(EventPublisher):
    def __init__(self):
        self.sent: list[tuple[str, str, dict]] = []
        self.fail = False

    def publish(self, topic, key, payload):
        if self.fail:
            raise ConnectionError("broker unavailable")
        self.sent.append((topic, key, payload))

    @property
    def event_types(self) -> list[str]:
        return [payload["eventType"] for _, _, payload in self.sent]


class FakeGraphRepository:
    """In-memory stand-in for GraphRepository."""

    def __init__(self):
        self.users: dict[str, GraphUser] = {}
        self.movies: dict[str, GraphMovie] = {}
        self.edges: dict[tuple[str, str], RatedEdge] = {}
        self.fail_writes = False
        self.writes = 0

    def add_user(self, user_id, name, email):
        self.users[email] = GraphUser(id=user_id, name=name, email=email)

    def add_movie(self, movie_id, title, released=None, tagline=None):
        self.movies[movie_id] = GraphMovie(id=movie_id, title=title, released=released, tagline=tagline)

    def find_user_by_email(self, email):
        return self.users.get(email)

    def find_movie(self, movie_id):
        return self.movies.get(movie_id)

    def save_rated_edge(self, user_id, movie_id, rating, comment, timestamp):
        if self.fail_writes:
            raise ConnectionError("graph unavailable")
        self.writes += 1
        self.edges[(user_id, movie_id)] = RatedEdge(user_id, movie_id, rating, comment, timestamp)
        return True

    def delete_rated_edge(self, user_id, movie_id):
        if self.fail_writes:
            raise ConnectionError("graph unavailable")
        self.writes += 1
        return self.edges.pop((user_id, movie_id), None) is not None

    def all_rated_edges(self):
        return list(self.edges.values())


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
    session = Session()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def graph():
    fake = FakeGraphRepository()
    fake.add_user("u1", "Alice", "alice@example.com")
    fake.add_user("u2", "Bob", "bob@example.com")
    fake.add_movie("m1", "The Matrix", 1999, "Welcome to the Real World")
    fake.add_movie("m2", "Cloud Atlas", 2012, "Everything is connected")
    return fake


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def rating_service(db_session, graph, publisher):
    return RatingService(db_session, graph, RatingEventProducer(publisher))


@pytest.fixture
def make_rating(db_session):
    def _make(user_id, movie_id, score, comment=None):
        rating = models.Rating(
            rating=score,
            comment=comment,
            timestamp=datetime(2024, 1, 1, 12, 0, 0),
            user_id=user_id,
            user_name=user_id,
            movie_id=movie_id,
            movie_title=movie_id,
        )
        db_session.add(rating)
        db_session.commit()
        return rating

    return _make
