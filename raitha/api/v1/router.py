"""Main API router aggregating all v1 routes."""

from fastapi import APIRouter

from raitha.api.v1 import conversations, languages, users

api_router = APIRouter()

api_router.include_router(conversations.router)
api_router.include_router(languages.router)
api_router.include_router(users.router)
