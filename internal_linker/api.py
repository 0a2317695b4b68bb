"""
FastAPI Backend for Internal Linker
Provides REST API endpoints for link injection and anchor inspection
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
import logging

from . import __version__
from .config import settings
from .orchestrator import DistributionConfig, InternalLinkOrchestrator
from .pages import PageInfo
from .scoring import AnchorConfig, find_best_anchors
from .zones import ConfigurationError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Internal Linker API",
    description="Contextual internal link injection API",
    version=__version__
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Pydantic models
class PageModel(BaseModel):
    title: str = ""
    slug: str
    description: str = ""
    primary_keyword: str = ""
    secondary_keywords: List[str] = Field(default_factory=list)
    category: str = ""
    topics: List[str] = Field(default_factory=list)

    def to_page(self) -> PageInfo:
        return PageInfo.from_dict(self.model_dump())


class InjectRequest(BaseModel):
    html: str
    pages: List[PageModel]
    base_url: str
    config: Dict[str, Any] = Field(default_factory=dict)


class CandidateRequest(BaseModel):
    text: str
    page: PageModel
    config: Dict[str, Any] = Field(default_factory=dict)
    limit: int = Field(10, ge=1, le=100)


@app.get("/")
async def root():
    return {"message": "Internal Linker API", "version": __version__}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


# ============ LINKING ENDPOINTS ============

@app.post("/api/inject", response_model=dict)
async def inject_links(request: InjectRequest):
    """Inject internal links into one HTML document"""
    try:
        # One orchestrator per request; its state belongs to a single document
        orchestrator = InternalLinkOrchestrator(DistributionConfig.from_dict(request.config))
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    pages = [page.to_page() for page in request.pages]
    result = orchestrator.process_content(request.html, pages, request.base_url)

    response = result.to_dict()
    response['stats'] = orchestrator.get_stats()
    return response


@app.post("/api/candidates", response_model=dict)
async def score_candidates(request: CandidateRequest):
    """Rank anchor candidates for a paragraph and one target page"""
    try:
        anchor_config = AnchorConfig.from_dict(request.config)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    page = request.page.to_page()
    candidates = find_best_anchors(request.text, page, anchor_config)

    return {
        "page": page.to_dict(),
        "count": len(candidates),
        "candidates": [c.to_dict() for c in candidates[:request.limit]],
    }


@app.get("/api/config/defaults")
async def get_default_config():
    """Default distribution configuration"""
    return DistributionConfig().to_dict()


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=settings.LOG_LEVEL)
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
