"""
Garage Users API Server
Users, their address and their cars on PostgreSQL
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import ALLOWED_ORIGINS, DB_APPLY_SCHEMA, LOG_LEVEL
from database.connection import init_database, apply_schema, close_database
from api.routes import health, users, user_relations, cars
from utils.error_handling import setup_error_handling

# Configure logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    app.state.db_pool = await init_database()
    if DB_APPLY_SCHEMA:
        await apply_schema(app.state.db_pool)
    yield
    await close_database(app.state.db_pool)


# FastAPI app initialization
app = FastAPI(
    title="Garage Users API",
    description="CRUD API for users, their addresses and their cars",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials="*" not in ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Setup centralized error handling
setup_error_handling(app)

# Include API routes; relations first so /api/users/relations wins over /api/users/{user_id}
app.include_router(health.router, tags=["Health"])
app.include_router(user_relations.router, prefix="/api/users/relations", tags=["User Relations"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(cars.router, prefix="/api/cars", tags=["Cars"])

# Server startup is handled by main.py at the project root
