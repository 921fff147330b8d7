import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .database import init_db
from .events import close_publisher, get_publisher
from .exceptions import register_exception_handlers
from .graph import close_graph, get_graph
from .routers import rating_routes, recommendation_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s starting", config.PROJECT_NAME)
    init_db()
    yield
    close_graph()
    close_publisher()
    logger.info("%s shutting down", config.PROJECT_NAME)


app = FastAPI(title="GraphFlix Ratings & Recommendations", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/health")
def health():
    return {
        "status": "UP",
        "project": config.PROJECT_NAME,
        "graph": get_graph().is_available(),
        "eventBus": get_publisher().is_available(),
    }


app.include_router(rating_routes.router)
app.include_router(recommendation_routes.router)
