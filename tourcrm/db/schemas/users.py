import uuid
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field


Role = Literal["admin", "manager", "viewer"]


class UserBase(BaseModel):
    username: str = Field(min_length=3, max_length=100)
    name: str = Field(min_length=1, max_length=200)
    email: str | None = None
    role: Role = "manager"


class UserCreate(UserBase):
    password: str = Field(min_length=6)


class UserUpdate(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=100)
    name: str | None = None
    email: str | None = None
    role: Role | None = None
    password: str | None = Field(default=None, min_length=6)


class User(UserBase):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    token: str
    expires_at: datetime
    user: User
