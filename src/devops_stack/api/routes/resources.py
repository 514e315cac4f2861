"""In-memory users and data CRUD, plus demo helpers."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from devops_stack.api.deps import get_store
from devops_stack.core.errors import NotFoundError
from devops_stack.core.logging import get_logger
from devops_stack.core.schemas import DataCreate, DataItem, DataUpdate, User, UserCreate
from devops_stack.core.store import InMemoryStore

router = APIRouter(prefix="/api", tags=["resources"])
logger = get_logger(__name__)

SAMPLE_USERS = [
    UserCreate(name="John Doe", email="john@example.com", role="admin"),
    UserCreate(name="Jane Smith", email="jane@example.com", role="user"),
    UserCreate(name="Bob Johnson", email="bob@example.com", role="user"),
]
SAMPLE_DATA = [
    DataCreate(content="Sample content 1", type="test", metadata={"source": "seed"}),
    DataCreate(content="Sample content 2", type="demo", metadata={"source": "seed"}),
    DataCreate(content="Sample content 3", type="test", metadata={"source": "seed"}),
]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/users")
def list_users(store: InMemoryStore = Depends(get_store)) -> dict:
    users = store.list_users()
    logger.info("Users list requested", extra={"extra_fields": {"count": len(users)}})
    return {"users": users, "count": len(users), "timestamp": _now()}


@router.post("/users", status_code=201, response_model=User)
def create_user(payload: UserCreate, store: InMemoryStore = Depends(get_store)) -> User:
    user = store.add_user(payload)
    logger.info("New user created", extra={"extra_fields": {"user_id": user.id}})
    return user


@router.get("/users/{user_id}", response_model=User)
def get_user(user_id: str, store: InMemoryStore = Depends(get_store)) -> User:
    user = store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("/data")
def list_data(
    limit: int = Query(default=10, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    type: Optional[str] = None,
    store: InMemoryStore = Depends(get_store),
) -> dict:
    page, total = store.list_data(limit=limit, offset=offset, type=type)
    return {
        "data": page,
        "total": total,
        "limit": limit,
        "offset": offset,
        "has_more": offset + limit < total,
        "timestamp": _now(),
    }


@router.post("/data", status_code=201, response_model=DataItem)
def create_data(payload: DataCreate, store: InMemoryStore = Depends(get_store)) -> DataItem:
    item = store.add_data(payload)
    logger.info(
        "New data created", extra={"extra_fields": {"data_id": item.id, "type": item.type}}
    )
    return item


@router.get("/data/{item_id}", response_model=DataItem)
def get_data(item_id: str, store: InMemoryStore = Depends(get_store)) -> DataItem:
    item = store.get_data(item_id)
    if item is None:
        raise NotFoundError("Data not found")
    return item


@router.put("/data/{item_id}", response_model=DataItem)
def update_data(
    item_id: str, payload: DataUpdate, store: InMemoryStore = Depends(get_store)
) -> DataItem:
    item = store.update_data(item_id, payload)
    if item is None:
        raise NotFoundError("Data not found")
    logger.info("Data updated", extra={"extra_fields": {"data_id": item_id}})
    return item


@router.delete("/data/{item_id}")
def delete_data(item_id: str, store: InMemoryStore = Depends(get_store)) -> dict:
    item = store.delete_data(item_id)
    if item is None:
        raise NotFoundError("Data not found")
    logger.info("Data deleted", extra={"extra_fields": {"data_id": item_id}})
    return {"message": "Data deleted successfully", "deleted_item": item, "timestamp": _now()}


@router.get("/logs")
def logs(level: str = "info", limit: int = Query(default=50, ge=1, le=1000)) -> dict:
    return {
        "message": "Logs endpoint - application logs are written to stdout as JSON",
        "level": level,
        "limit": limit,
        "timestamp": _now(),
    }


@router.post("/test/seed")
def seed(store: InMemoryStore = Depends(get_store)) -> dict:
    for user in SAMPLE_USERS:
        store.add_user(user)
    for item in SAMPLE_DATA:
        store.add_data(item)
    logger.info(
        "Test data seeded",
        extra={"extra_fields": {"users": len(SAMPLE_USERS), "data": len(SAMPLE_DATA)}},
    )
    return {
        "message": "Test data seeded successfully",
        "users_created": len(SAMPLE_USERS),
        "data_created": len(SAMPLE_DATA),
        "timestamp": _now(),
    }
