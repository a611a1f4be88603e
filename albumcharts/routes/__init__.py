"""API routes."""

from fastapi import APIRouter

from albumcharts.routes import albums

api_router = APIRouter()

# Album lookup, likes and the popular chart
api_router.include_router(albums.router, prefix="/v1/albums", tags=["albums"])
