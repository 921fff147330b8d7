"""
Cypher traversals behind personalized and trending recommendations.

All queries are read-only.
"""

from typing import Optional

from ..graph import GraphStore
from .graph_repository import GraphMovie

MOVIES_BY_LIKED_ACTORS = """
MATCH (user:User {email: $email})-[r:RATED]->(likedMovie:Movie)
WHERE r.rating >= $minRating
WITH user, likedMovie
MATCH (likedMovie)<-[:ACTED_IN]-(actor:Person)-[:ACTED_IN]->(candidateMovie:Movie)
WHERE NOT (user)-[:RATED]->(candidateMovie)
  AND candidateMovie <> likedMovie
RETURN candidateMovie AS movie, count(DISTINCT actor) AS matches
ORDER BY matches DESC, movie.released DESC
LIMIT $limit
"""

MOVIES_BY_LIKED_DIRECTORS = """
MATCH (user:User {email: $email})-[r:RATED]->(likedMovie:Movie)
WHERE r.rating >= $minRating
WITH user, likedMovie
MATCH (likedMovie)<-[:DIRECTED]-(director:Person)-[:DIRECTED]->(candidateMovie:Movie)
WHERE NOT (user)-[:RATED]->(candidateMovie)
  AND candidateMovie <> likedMovie
RETURN candidateMovie AS movie, count(DISTINCT director) AS matches
ORDER BY matches DESC, movie.released DESC
LIMIT $limit
"""

TRENDING_MOVIES = """
MATCH (m:Movie)<-[r:RATED]-(:User)
WITH m, count(r) AS ratingCount, avg(r.rating) AS avgRating
WHERE ratingCount >= 1
RETURN m AS movie, ratingCount, avgRating
ORDER BY ratingCount DESC, avgRating DESC
LIMIT $limit
"""

COUNT_USER_RATINGS = """
MATCH (user:User {email: $email})-[r:RATED]->(:Movie)
RETURN count(r) AS ratingCount
"""


class RecommendationRepository:
    def __init__(self, graph: GraphStore):
        self.graph = graph

    def find_movies_by_liked_actors(self, email: str, min_rating: int, limit: int) -> list[GraphMovie]:
        rows = self.graph.read(MOVIES_BY_LIKED_ACTORS, email=email, minRating=min_rating, limit=limit)
        return [GraphMovie.from_node(row["movie"]) for row in rows]

    def find_movies_by_liked_directors(self, email: str, min_rating: int, limit: int) -> list[GraphMovie]:
        rows = self.graph.read(MOVIES_BY_LIKED_DIRECTORS, email=email, minRating=min_rating, limit=limit)
        return [GraphMovie.from_node(row["movie"]) for row in rows]

    def find_trending_movies(self, limit: int) -> list[GraphMovie]:
        rows = self.graph.read(TRENDING_MOVIES, limit=limit)
        return [GraphMovie.from_node(row["movie"]) for row in rows]

    def count_user_ratings(self, email: str) -> Optional[int]:
        rows = self.graph.read(COUNT_USER_RATINGS, email=email)
        if not rows:
            return None
        return rows[0]["ratingCount"]
