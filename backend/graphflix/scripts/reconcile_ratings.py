"""
Read-repair between the rating store and the RATED edges in Neo4j.

Rating rows are authoritative: missing or stale edges are rewritten and
edges with no matching row are deleted. Run after an outage of either store.
"""

from sqlalchemy.orm import Session

from graphflix.database import SessionLocal
from graphflix.events import RatingEventProducer, LoggingEventPublisher
from graphflix.graph import close_graph, get_graph
from graphflix.repositories.graph_repository import GraphRepository
from graphflix.services.rating_service import RatingService


def main():
    db: Session = SessionLocal()

    try:
        service = RatingService(
            db,
            GraphRepository(get_graph()),
            RatingEventProducer(LoggingEventPublisher()),
        )
        report = service.reconcile()
        print(
            f"Checked {report.checked} ratings: "
            f"{report.repaired} edges repaired, {report.removed} orphan edges removed."
        )
    finally:
        db.close()
        close_graph()


if __name__ == "__main__":
    main()
