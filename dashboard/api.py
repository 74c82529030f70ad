"""
Dashboard - API.

============================================================
RESPONSIBILITY
============================================================
Provides the REST API over the aggregation service.

- One pipeline per process, built on first request
- Read-only views plus an explicit refresh
- The service is a FastAPI dependency (overridable in tests)
============================================================
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from aggregation.service import RiskAggregationService
from orchestrator.core import Pipeline, build_pipeline

logger = logging.getLogger(__name__)


# ============================================================
# Response Models
# ============================================================

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str = "1.0.0"
    uptime_seconds: float = 0


class SourceStatus(BaseModel):
    name: str
    display_name: str
    status: str
    counts_toward_live: bool
    is_reference: bool
    indicators: List[str]
    error_count: int = 0
    last_error: Optional[str] = None
    uptime_percentage: float = 100.0


class RefreshResponse(BaseModel):
    status: str
    total: int
    avg_score: int
    updated_at: str


# ============================================================
# Pipeline dependency
# ============================================================

_pipeline: Optional[Pipeline] = None


def get_pipeline() -> Pipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = build_pipeline()
    return _pipeline


def get_service() -> RiskAggregationService:
    return get_pipeline().service


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    global _pipeline
    if _pipeline is not None:
        await _pipeline.close()
        _pipeline = None


# ============================================================
# FastAPI Application
# ============================================================

app = FastAPI(
    title="Country Risk API",
    description="Country risk profiles aggregated from public indicator sources",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Startup time for uptime calculation
_startup_time = datetime.now(timezone.utc)


# ============================================================
# API Endpoints
# ============================================================

@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "service": "Country Risk API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    now = datetime.now(timezone.utc)
    return HealthResponse(
        status="healthy",
        timestamp=now.isoformat(),
        uptime_seconds=(now - _startup_time).total_seconds(),
    )


@app.get("/api/risk/combined", tags=["Risk"])
async def get_combined(service: RiskAggregationService = Depends(get_service)) -> Dict[str, Any]:
    """Profiles, summary and regional breakdown."""
    report = await service.get_combined_data()
    return report.to_dict()


@app.get("/api/risk/countries", tags=["Risk"])
async def get_countries(service: RiskAggregationService = Depends(get_service)) -> List[Dict[str, str]]:
    """The monitored roster."""
    return service.get_monitored_countries()


@app.get("/api/risk/country/{iso2}", tags=["Risk"])
async def get_country(
    iso2: str,
    service: RiskAggregationService = Depends(get_service),
) -> Dict[str, Any]:
    """One country's scored profile."""
    code = iso2.strip().upper()
    if not service.is_monitored(code):
        raise HTTPException(status_code=404, detail=f"{code} is not a monitored country")

    profile = await service.get_country_profile(code)
    if profile is None:
        raise HTTPException(status_code=503, detail=f"No data available for {code}")
    return profile.to_dict()


@app.get("/api/risk/distribution", tags=["Risk"])
async def get_distribution(service: RiskAggregationService = Depends(get_service)) -> Dict[str, int]:
    """Number of countries per risk level."""
    return await service.get_risk_distribution()


@app.get("/api/risk/regions", tags=["Risk"])
async def get_regions(service: RiskAggregationService = Depends(get_service)) -> List[Dict[str, Any]]:
    """Regions ordered by average risk."""
    return [region.to_dict() for region in await service.get_regional_summary()]


@app.get("/api/risk/sources", response_model=List[SourceStatus], tags=["Sources"])
async def get_sources(service: RiskAggregationService = Depends(get_service)):
    """Health of each registered indicator source."""
    registry = service.orchestrator.registry
    metadata = registry.get_all_metadata()
    health = registry.get_all_health()

    return [
        SourceStatus(
            name=name,
            display_name=meta.display_name,
            status=health[name].status.value,
            counts_toward_live=meta.counts_toward_live,
            is_reference=meta.is_reference,
            indicators=list(meta.indicators),
            error_count=health[name].error_count,
            last_error=health[name].last_error,
            uptime_percentage=round(health[name].uptime_percentage, 2),
        )
        for name, meta in metadata.items()
    ]


@app.post("/api/risk/refresh", response_model=RefreshResponse, tags=["Risk"])
async def refresh(service: RiskAggregationService = Depends(get_service)):
    """Drop cached aggregates and rebuild them."""
    report = await service.refresh()
    payload = report.to_dict()
    logger.info(f"Refresh requested: {report.summary.total} profiles")
    return RefreshResponse(
        status="ok",
        total=report.summary.total,
        avg_score=report.summary.avg_score,
        updated_at=payload["updatedAt"],
    )
