from fastapi import APIRouter

from mro_ops.api.v1.endpoints import assistant, documents

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
api_router.include_router(assistant.router, prefix="/assistant", tags=["Assistant"])

__all__ = ["api_router"]
