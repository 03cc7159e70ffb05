"""API route registration."""

from fastapi import APIRouter

from promptlab.api.handlers.chat import router as chat_router
from promptlab.api.handlers.compare import router as compare_router
from promptlab.api.handlers.health import router as health_router
from promptlab.api.handlers.prompt import router as prompt_router
from promptlab.api.handlers.providers import router as providers_router

# Main API router that aggregates all endpoint routers
api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(providers_router, tags=["providers"])
api_router.include_router(prompt_router, tags=["prompt"])
api_router.include_router(chat_router, tags=["chat"])
api_router.include_router(compare_router, tags=["compare"])
