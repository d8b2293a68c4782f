from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from strawberry.fastapi import GraphQLRouter

from gympulse.core.config import get_settings
from gympulse.core.logging_config import get_logger, setup_logging
from gympulse.db.postgresql import init_models
from gympulse.graphql.context import build_context
from gympulse.graphql.schema import schema

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_models()
    logger.info("GymPulse API started")
    yield
    logger.info("GymPulse API stopped")


settings = get_settings()

app = FastAPI(title="GymPulse", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["x-access-token"],
)

graphql_app = GraphQLRouter(
    schema=schema,
    context_getter=build_context,
    graphql_ide="graphiql",
)
app.include_router(graphql_app, prefix="/graphql")


@app.get("/")
def read_root():
    return {"status": "ok", "service": "gympulse"}
