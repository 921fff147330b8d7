"""
Neo4j access for the movie graph.

Nodes: User, Movie, Person. Edges: RATED, ACTED_IN, DIRECTED, IN_WATCHLIST.
One driver per process; every call opens its own session and runs inside a
managed read or write transaction.
"""

import logging
from typing import Any, Optional

from neo4j import GraphDatabase

from . import config

logger = logging.getLogger(__name__)


def _collect(tx, query: str, params: dict) -> list[dict]:
    return [record.data() for record in tx.run(query, params)]


class GraphStore:
    def __init__(self, uri: str, user: str, password: str, database: Optional[str] = None):
        self.driver = GraphDatabase.driver(uri, auth=(user, password))
        self.database = database

    def close(self) -> None:
        self.driver.close()

    def read(self, query: str, **params: Any) -> list[dict]:
        with self.driver.session(database=self.database) as session:
            return session.execute_read(_collect, query, params)

    def write(self, query: str, **params: Any) -> list[dict]:
        with self.driver.session(database=self.database) as session:
            return session.execute_write(_collect, query, params)

    def is_available(self) -> bool:
        try:
            self.driver.verify_connectivity()
            return True
        except Exception as e:
            logger.warning("Neo4j not reachable: %s", e)
            return False


_store: Optional[GraphStore] = None


def get_graph() -> GraphStore:
    global _store
    if _store is None:
        _store = GraphStore(
            config.NEO4J_URI,
            config.NEO4J_USER,
            config.NEO4J_PASSWORD,
            config.NEO4J_DATABASE,
        )
        logger.info("Neo4j driver created for %s", config.NEO4J_URI)
    return _store


def close_graph() -> None:
    global _store
    if _store is not None:
        _store.close()
        _store = None
