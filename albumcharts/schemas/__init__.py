"""Pydantic schemas for API request/response validation."""

from albumcharts.schemas.album import AlbumOut, ChartEntry, PopularResponse
from albumcharts.schemas.common import ErrorDetail, ErrorResponse

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "AlbumOut",
    "ChartEntry",
    "PopularResponse",
]
