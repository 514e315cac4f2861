"""
Pydantic models for API boundaries.
Why: reject malformed users/data before they reach the store.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., min_length=3, max_length=254)
    role: Optional[str] = Field(default=None, max_length=32)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value.strip()

    @field_validator("email")
    @classmethod
    def email_has_at(cls, value: str) -> str:
        local, _, domain = value.partition("@")
        if not local or not domain:
            raise ValueError("email must look like user@domain")
        return value


class User(BaseModel):
    id: str
    name: str
    email: str
    role: str
    created_at: str
    last_active: str


class DataCreate(BaseModel):
    content: Any
    type: Optional[str] = Field(default=None, max_length=64)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("content")
    @classmethod
    def content_present(cls, value: Any) -> Any:
        if value is None or value == "" or value == {} or value == []:
            raise ValueError("content is required")
        return value


class DataUpdate(BaseModel):
    content: Any = None
    type: Optional[str] = Field(default=None, max_length=64)
    metadata: Optional[Dict[str, Any]] = None


class DataItem(BaseModel):
    id: str
    content: Any
    type: str
    metadata: Dict[str, Any]
    created_at: str
    updated_at: str
