import pytest

from graphflix.repositories.graph_repository import GraphMovie
from graphflix.services import recommendation_service as rec
from graphflix.services.recommendation_service import RecommendationService, merge_candidates, normalize_limit


def movie(movie_id, released=2000):
    return GraphMovie(id=movie_id, title=f"Movie {movie_id}", released=released, tagline=None)


class FakeRecommendationRepository:
    def __init__(self, rating_count=5, actor_based=(), director_based=(), trending=()):
        self.rating_count = rating_count
        self.actor_based = list(actor_based)
        self.director_based = list(director_based)
        self.trending = list(trending)
        self.calls = []

    def count_user_ratings(self, email):
        self.calls.append(("count", email))
        return self.rating_count

    def find_movies_by_liked_actors(self, email, min_rating, limit):
        self.calls.append(("actors", email, min_rating, limit))
        return self.actor_based[:limit]

    def find_movies_by_liked_directors(self, email, min_rating, limit):
        self.calls.append(("directors", email, min_rating, limit))
        return self.director_based[:limit]

    def find_trending_movies(self, limit):
        self.calls.append(("trending", limit))
        return self.trending[:limit]


def test_merge_ranks_actor_and_director_match_first():
    a, b, c = movie("A"), movie("B"), movie("C")

    merged = merge_candidates([a, b], [b, c], limit=10)

    assert [m.id for m in merged] == ["B", "A", "C"]
    assert [m.score for m in merged] == [1.0, 0.8, 0.7]
    assert merged[0].reason == rec.ACTOR_AND_DIRECTOR_REASON
    assert merged[1].reason == rec.ACTOR_REASON
    assert merged[2].reason == rec.DIRECTOR_REASON


def test_merge_keeps_insertion_order_for_equal_scores():
    merged = merge_candidates(
        [movie("A1"), movie("A2"), movie("A3")],
        [movie("D1"), movie("D2")],
        limit=10,
    )
    assert [m.id for m in merged] == ["A1", "A2", "A3", "D1", "D2"]


def test_merge_truncates_to_limit():
    merged = merge_candidates([movie("A"), movie("B")], [movie("B"), movie("C")], limit=2)
    assert [m.id for m in merged] == ["B", "A"]


def test_merge_ignores_repeated_director_candidates():
    merged = merge_candidates([], [movie("C"), movie("C")], limit=10)
    assert len(merged) == 1
    assert merged[0].score == 0.7


def test_merge_of_nothing_is_empty():
    assert merge_candidates([], [], limit=10) == []


def test_merge_copies_movie_fields():
    merged = merge_candidates([GraphMovie("X", "Heat", 1995, "A Los Angeles Crime Saga")], [], limit=1)
    assert merged[0].title == "Heat"
    assert merged[0].released_year == 1995
    assert merged[0].tagline == "A Los Angeles Crime Saga"


@pytest.mark.parametrize("limit", [0, -1, 51, None])
def test_out_of_range_limit_becomes_default(limit):
    assert normalize_limit(limit) == 10


@pytest.mark.parametrize("limit", [1, 10, 50])
def test_in_range_limit_is_kept(limit):
    assert normalize_limit(limit) == limit


def test_personalized_uses_both_traversals_with_liked_threshold():
    repo = FakeRecommendationRepository(
        rating_count=3,
        actor_based=[movie("A"), movie("B")],
        director_based=[movie("B"), movie("C")],
        trending=[movie("T")],
    )
    response = RecommendationService(repo).get_personalized_recommendations("alice@example.com", 10)

    assert [m.id for m in response.movies] == ["B", "A", "C"]
    assert ("actors", "alice@example.com", 7, 10) in repo.calls
    assert ("directors", "alice@example.com", 7, 10) in repo.calls
    assert ("trending", 10) not in repo.calls


@pytest.mark.parametrize("rating_count", [None, 0, 1, 2])
def test_cold_start_returns_trending(rating_count):
    repo = FakeRecommendationRepository(
        rating_count=rating_count,
        actor_based=[movie("A")],
        trending=[movie("T1"), movie("T2")],
    )
    service = RecommendationService(repo)

    personalized = service.get_personalized_recommendations("new@example.com", 5)
    trending = service.get_trending_recommendations(5)

    assert personalized == trending
    assert [m.id for m in personalized.movies] == ["T1", "T2"]
    assert all(call[0] != "actors" for call in repo.calls)


def test_no_candidates_is_not_a_fallback():
    repo = FakeRecommendationRepository(rating_count=10, trending=[movie("T")])
    response = RecommendationService(repo).get_personalized_recommendations("alice@example.com", 10)
    assert response.movies == []


def test_trending_shape():
    repo = FakeRecommendationRepository(trending=[movie("T1", 2001), movie("T2", 1990)])
    response = RecommendationService(repo).get_trending_recommendations(10)

    assert [m.id for m in response.movies] == ["T1", "T2"]
    assert all(m.reason == "Trending now" and m.score == 0.5 for m in response.movies)
    assert response.movies[0].released_year == 2001
