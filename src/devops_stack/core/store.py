"""
In-memory users/data store for the demo CRUD endpoints.
Why: the service is stateless by design; data lives only as long as the process.
"""

import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .schemas import DataCreate, DataItem, DataUpdate, User, UserCreate


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: Dict[str, User] = {}
        self._data: Dict[str, DataItem] = {}

    def add_user(self, payload: UserCreate) -> User:
        now = _now_iso()
        user = User(
            id=str(uuid.uuid4()),
            name=payload.name,
            email=payload.email,
            role=payload.role or "user",
            created_at=now,
            last_active=now,
        )
        with self._lock:
            self._users[user.id] = user
        return user

    def list_users(self) -> List[User]:
        with self._lock:
            return list(self._users.values())

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def add_data(self, payload: DataCreate) -> DataItem:
        now = _now_iso()
        item = DataItem(
            id=str(uuid.uuid4()),
            content=payload.content,
            type=payload.type or "general",
            metadata=payload.metadata or {},
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._data[item.id] = item
        return item

    def list_data(
        self, limit: int = 10, offset: int = 0, type: Optional[str] = None
    ) -> Tuple[List[DataItem], int]:
        """Return one page of items plus the total matching the filter."""
        with self._lock:
            items = list(self._data.values())
        if type:
            items = [item for item in items if item.type == type]
        return items[offset : offset + limit], len(items)

    def get_data(self, item_id: str) -> Optional[DataItem]:
        with self._lock:
            return self._data.get(item_id)

    def update_data(self, item_id: str, payload: DataUpdate) -> Optional[DataItem]:
        with self._lock:
            current = self._data.get(item_id)
            if current is None:
                return None
            changes: Dict[str, Any] = {"updated_at": _now_iso()}
            # Falsy fields keep their previous value.
            if payload.content:
                changes["content"] = payload.content
            if payload.type:
                changes["type"] = payload.type
            if payload.metadata:
                changes["metadata"] = payload.metadata
            updated = current.model_copy(update=changes)
            self._data[item_id] = updated
            return updated

    def delete_data(self, item_id: str) -> Optional[DataItem]:
        with self._lock:
            return self._data.pop(item_id, None)

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return {"users": len(self._users), "data": len(self._data)}

    def clear(self) -> None:
        with self._lock:
            self._users.clear()
            self._data.clear()
