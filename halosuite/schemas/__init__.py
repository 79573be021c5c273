"""Schemas package."""

from .auth import AuthResponse, LoginRequest, RegisterRequest
from .common import APIResponse, BatchDeleteRequest, DeletedCount, PaginationMeta
from .user import UserCreate, UserResponse, UserUpdate

__all__ = [
    "APIResponse",
    "PaginationMeta",
    "BatchDeleteRequest",
    "DeletedCount",
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "LoginRequest",
    "RegisterRequest",
    "AuthResponse",
]
