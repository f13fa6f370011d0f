"""Response models for the sitemap server API."""

from pydantic import BaseModel
from typing import List, Dict, Any


class SearchResponse(BaseModel):
    """Search results with the total match count for pagination."""
    total: int
    results: List[Dict[str, Any]]


class WordsResponse(BaseModel):
    """Words that made one document relevant."""
    words: List[str]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    documents: int = 0
