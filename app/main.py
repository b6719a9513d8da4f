from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from dotenv import load_dotenv
import logging
import os

from app import database
from app.database import Base
from app.models import (
    Category,
    Role,
    Status,
    User,
    UserRole,
    ROLE_IDS,
    STATUS_IDS,
)
from app.routers import chat, expenses, reference

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = ["Travel", "Food", "Office Supplies", "Accommodation", "Other"]

DEMO_USERS = [
    {"id": 1, "name": "Alice Example", "email": "alice@example.co.uk",
     "role": UserRole.EMPLOYEE, "manager_id": 2},
    {"id": 2, "name": "Bob Manager", "email": "bob.manager@example.co.uk",
     "role": UserRole.MANAGER, "manager_id": None},
]


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_reference_data(session_factory: async_sessionmaker) -> None:
    """Insert roles, statuses, categories and demo users that are missing."""
    async with session_factory() as session:
        for role, role_id in ROLE_IDS.items():
            if await session.get(Role, role_id) is None:
                session.add(Role(id=role_id, name=role.value))
                logger.info(f"Seeded role: {role.value}")

        for expense_status, status_id in STATUS_IDS.items():
            if await session.get(Status, status_id) is None:
                session.add(Status(id=status_id, name=expense_status.value))
                logger.info(f"Seeded status: {expense_status.value}")

        category_count = await session.scalar(select(func.count(Category.id)))
        if not category_count:
            for name in DEFAULT_CATEGORIES:
                session.add(Category(name=name, is_active=True))
            logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} expense categories")

        await session.flush()

        user_count = await session.scalar(select(func.count(User.id)))
        if not user_count:
            # Managers first so manager_id references resolve
            for user in sorted(DEMO_USERS, key=lambda u: u["manager_id"] is not None):
                session.add(User(
                    id=user["id"],
                    name=user["name"],
                    email=user["email"],
                    role_id=ROLE_IDS[user["role"]],
                    manager_id=user["manager_id"],
                    is_active=True,
                ))
                await session.flush()
            logger.info(f"Seeded {len(DEMO_USERS)} demo users")

        await session.commit()
    logger.info("Reference data seeding completed")


app = FastAPI(
    title="Expense Management API",
    description="Expense submission and approval workflow with an AI chat assistant",
    version="1.0.0"
)

cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:4200").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(expenses.router)
app.include_router(reference.router)
app.include_router(chat.router)


@app.on_event("startup")
async def startup_event():
    if database.async_engine is None:
        logger.warning("No database configured; serving demo data")
        return
    try:
        await init_db(database.async_engine)
        await seed_reference_data(database.AsyncSessionLocal)
    except (SQLAlchemyError, OSError) as e:
        # Reads fall back to demo data until the database is reachable
        logger.error(f"Database initialisation failed: {e}", exc_info=True)


@app.get("/")
def read_root():
    return {"message": "Hello, Expense Management API"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "database_configured": database.is_database_configured(),
    }
