"""
Prepare the Neo4j graph and the rating store.

- Waits for Neo4j to accept connections
- Creates uniqueness constraints (User.email, User.id, Movie.id, Person.id)
- Creates the ratings table
- Safe to run repeatedly
"""

import time

from neo4j.exceptions import ServiceUnavailable

from graphflix.database import init_db
from graphflix.graph import close_graph, get_graph

MAX_GRAPH_WAIT_SECONDS = 180
GRAPH_RETRY_INTERVAL = 2

CONSTRAINTS = [
    "CREATE CONSTRAINT user_email IF NOT EXISTS FOR (u:User) REQUIRE u.email IS UNIQUE",
    "CREATE CONSTRAINT user_id IF NOT EXISTS FOR (u:User) REQUIRE u.id IS UNIQUE",
    "CREATE CONSTRAINT movie_id IF NOT EXISTS FOR (m:Movie) REQUIRE m.id IS UNIQUE",
    "CREATE CONSTRAINT person_id IF NOT EXISTS FOR (p:Person) REQUIRE p.id IS UNIQUE",
]


def wait_for_graph():
    """Block until Neo4j is accepting connections."""
    print("Waiting for Neo4j to be ready...")

    deadline = time.time() + MAX_GRAPH_WAIT_SECONDS
    graph = get_graph()

    while time.time() < deadline:
        try:
            graph.driver.verify_connectivity()
            print("Neo4j is ready.")
            return graph
        except ServiceUnavailable:
            print("Neo4j not ready yet. Retrying...")
            time.sleep(GRAPH_RETRY_INTERVAL)

    raise RuntimeError("Neo4j did not become ready in time")


def main():
    graph = wait_for_graph()
    try:
        for statement in CONSTRAINTS:
            graph.write(statement)
        print(f"Ensured {len(CONSTRAINTS)} graph constraints.")

        init_db()
        print("Rating store tables ready.")
    finally:
        close_graph()


if __name__ == "__main__":
    main()
