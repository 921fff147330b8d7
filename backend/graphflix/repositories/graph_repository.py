"""
Lookups of User/Movie nodes and maintenance of the RATED edge that mirrors
each Rating row.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..graph import GraphStore


@dataclass
class GraphUser:
    id: str
    name: Optional[str]
    email: str


@dataclass
class GraphMovie:
    id: str
    title: str
    released: Optional[int] = None
    tagline: Optional[str] = None

    @classmethod
    def from_node(cls, node: dict) -> "GraphMovie":
        return cls(
            id=node["id"],
            title=node.get("title", ""),
            released=node.get("released"),
            tagline=node.get("tagline"),
        )


@dataclass
class RatedEdge:
    user_id: str
    movie_id: str
    rating: int
    comment: Optional[str]
    timestamp: Optional[datetime]


FIND_USER_BY_EMAIL = """
MATCH (u:User {email: $email})
RETURN u.id AS id, u.name AS name, u.email AS email
"""

FIND_MOVIE_BY_ID = """
MATCH (m:Movie {id: $movieId})
RETURN m AS movie
"""

MERGE_RATED_EDGE = """
MATCH (u:User {id: $userId}), (m:Movie {id: $movieId})
MERGE (u)-[r:RATED]->(m)
SET r.rating = $rating, r.comment = $comment, r.timestamp = $timestamp
RETURN count(r) AS written
"""

DELETE_RATED_EDGE = """
MATCH (:User {id: $userId})-[r:RATED]->(:Movie {id: $movieId})
DELETE r
RETURN count(r) AS deleted
"""

ALL_RATED_EDGES = """
MATCH (u:User)-[r:RATED]->(m:Movie)
RETURN u.id AS userId, m.id AS movieId, r.rating AS rating,
       r.comment AS comment, r.timestamp AS timestamp
"""


class GraphRepository:
    def __init__(self, graph: GraphStore):
        self.graph = graph

    def find_user_by_email(self, email: str) -> Optional[GraphUser]:
        rows = self.graph.read(FIND_USER_BY_EMAIL, email=email)
        if not rows:
            return None
        row = rows[0]
        return GraphUser(id=row["id"], name=row.get("name"), email=row["email"])

    def find_movie(self, movie_id: str) -> Optional[GraphMovie]:
        rows = self.graph.read(FIND_MOVIE_BY_ID, movieId=movie_id)
        if not rows:
            return None
        return GraphMovie.from_node(rows[0]["movie"])

    def save_rated_edge(
        self,
        user_id: str,
        movie_id: str,
        rating: int,
        comment: Optional[str],
        timestamp: datetime,
    ) -> bool:
        """MERGE keeps a single RATED edge per (user, movie)."""
        rows = self.graph.write(
            MERGE_RATED_EDGE,
            userId=user_id,
            movieId=movie_id,
            rating=rating,
            comment=comment,
            timestamp=timestamp,
        )
        return bool(rows) and rows[0]["written"] > 0

    def delete_rated_edge(self, user_id: str, movie_id: str) -> bool:
        rows = self.graph.write(DELETE_RATED_EDGE, userId=user_id, movieId=movie_id)
        return bool(rows) and rows[0]["deleted"] > 0

    def all_rated_edges(self) -> list[RatedEdge]:
        return [
            RatedEdge(
                user_id=row["userId"],
                movie_id=row["movieId"],
                rating=row["rating"],
                comment=row.get("comment"),
                timestamp=to_datetime(row.get("timestamp")),
            )
            for row in self.graph.read(ALL_RATED_EDGES)
        ]


def to_datetime(value) -> Optional[datetime]:
    # neo4j.time.DateTime has to_native(); plain datetimes pass through
    if value is None or isinstance(value, datetime):
        return value
    return value.to_native()
