"""
Region Latency Demo - FastAPI Server

Seeds synthetic e-commerce data into regional PostgreSQL databases and
serves aggregate analytics from any of them, with per-query timings.

Endpoints:
- POST /api/region: deployment region of this function
- GET  /api/database: analytics dashboard for one region
- GET  /api/regions: configured regions with user counts
- POST /api/regions/{code}/seed, GET /api/regions/{code}/count
- POST /api/seed: seed every region sequentially
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from fastapi import FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import uvicorn

from analytics import AnalyticsService
from config import SeedSettings, configure_logging, seed_settings_from_config, server_port
from regions import RegionRegistry, UnknownRegionError
from seeder import SeedingOrchestrator
from storage import StorageError

configure_logging()
logger = logging.getLogger(__name__)

LOCAL_REGION = "local"


# Response Models

class HealthResponse(BaseModel):
    status: str
    regions: List[str]


class DeploymentRegionResponse(BaseModel):
    """Region the serving function runs in"""
    region: str = Field(..., description="Infrastructure region code or 'local'")
    message: Optional[str] = None


class RegionInfo(BaseModel):
    code: str
    name: str
    location: str
    record_count: Optional[int] = Field(None, description="Users row count, None if unreachable")


class PhaseResultModel(BaseModel):
    kind: str
    records: int
    elapsed_s: float


class SeedSummaryModel(BaseModel):
    region: str
    phases: List[PhaseResultModel]
    total_records: int
    elapsed_s: float


class SeedResponse(BaseModel):
    success: bool
    summary: SeedSummaryModel


class SeedAllResponse(BaseModel):
    success: bool
    summaries: List[SeedSummaryModel]
    counts: Dict[str, int]


class CountResponse(BaseModel):
    region: str
    count: int


def region_from_header(vercel_id: Optional[str]) -> str:
    """
    Region prefix of an x-vercel-id header.

    Format is {region}::{identifier}, e.g. iad1::cwtlb-1743699480801-778d98ff31ce
    """
    if not vercel_id:
        return LOCAL_REGION
    return vercel_id.split("::")[0]


def create_app(
    registry: Optional[RegionRegistry] = None,
    settings: Optional[SeedSettings] = None,
    orchestrator: Optional[SeedingOrchestrator] = None
) -> FastAPI:
    """
    Build the FastAPI app.

    Without an injected registry one is built from config at startup and its
    connection pools are closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = registry is None
        reg = RegionRegistry.from_config() if owned else registry
        seed_settings = settings or seed_settings_from_config()

        app.state.registry = reg
        app.state.orchestrator = orchestrator or SeedingOrchestrator(reg, seed_settings)
        app.state.analytics = AnalyticsService(reg)
        logger.info(f"Serving regions: {', '.join(reg.codes) or '(none)'}")
        try:
            yield
        finally:
            if owned:
                reg.close()

    app = FastAPI(
        title="Region Latency Demo",
        description="Regional database seeding and analytics latency demo",
        version="0.1.0",
        lifespan=lifespan
    )

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request) -> HealthResponse:
        reg: RegionRegistry = request.app.state.registry
        return HealthResponse(
            status="healthy" if reg.codes else "degraded",
            regions=reg.codes
        )

    @app.post("/api/region", response_model=DeploymentRegionResponse)
    async def deployment_region(
        x_vercel_id: Optional[str] = Header(None)
    ) -> DeploymentRegionResponse:
        return DeploymentRegionResponse(region=region_from_header(x_vercel_id))

    @app.get("/api/sf", response_model=DeploymentRegionResponse)
    async def pinned_region(
        x_vercel_id: Optional[str] = Header(None)
    ) -> DeploymentRegionResponse:
        """Function pinned to San Francisco; reports where it actually ran."""
        return DeploymentRegionResponse(
            region=region_from_header(x_vercel_id),
            message="This endpoint always runs in San Francisco region"
        )

    @app.get("/api/database")
    async def database_stats(
        request: Request,
        region: Optional[str] = Query(None, description="Region code, defaults to the first region"),
        trends: bool = Query(False, description="Include hourly trends for the last 24h")
    ):
        """
        Analytics dashboard for one region

        Returns order statistics, top products by revenue, recent orders and
        optional hourly trends, plus timing per query in milliseconds.
        """
        reg: RegionRegistry = request.app.state.registry
        analytics: AnalyticsService = request.app.state.analytics
        code = region or reg.default_code

        if code not in reg:
            return JSONResponse(
                status_code=400,
                content={"error": f"Invalid region. Must be one of: {', '.join(reg.codes)}"}
            )

        try:
            return await asyncio.to_thread(analytics.dashboard, code, trends)
        except StorageError as e:
            logger.error(f"Database query error: {str(e)}")
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Failed to fetch database statistics",
                    "details": str(e.cause)
                }
            )

    @app.get("/api/regions", response_model=List[RegionInfo])
    async def list_regions(request: Request) -> List[RegionInfo]:
        reg: RegionRegistry = request.app.state.registry
        orch: SeedingOrchestrator = request.app.state.orchestrator

        infos = []
        for r in reg.regions:
            try:
                count = await asyncio.to_thread(orch.record_count, r.code)
            except StorageError as e:
                logger.warning(f"Could not count records for {r.code}: {str(e)}")
                count = None
            infos.append(RegionInfo(code=r.code, name=r.name, location=r.location, record_count=count))
        return infos

    @app.post("/api/regions/{code}/seed", response_model=SeedResponse)
    async def seed_region(code: str, request: Request) -> SeedResponse:
        orch: SeedingOrchestrator = request.app.state.orchestrator
        try:
            summary = await orch.seed_region(code)
        except UnknownRegionError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except StorageError as e:
            raise HTTPException(status_code=500, detail=str(e))

        return SeedResponse(success=True, summary=summary.to_dict())

    @app.get("/api/regions/{code}/count", response_model=CountResponse)
    async def region_count(code: str, request: Request) -> CountResponse:
        orch: SeedingOrchestrator = request.app.state.orchestrator
        try:
            count = await asyncio.to_thread(orch.record_count, code)
        except UnknownRegionError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except StorageError as e:
            logger.error(f"Count error: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

        return CountResponse(region=code, count=count)

    @app.post("/api/seed", response_model=SeedAllResponse)
    async def seed_all(request: Request) -> SeedAllResponse:
        """Seed every region one after another, then report user counts."""
        reg: RegionRegistry = request.app.state.registry
        orch: SeedingOrchestrator = request.app.state.orchestrator
        try:
            summaries = await orch.seed_all()
            counts = {}
            for code in reg.codes:
                counts[code] = await asyncio.to_thread(orch.record_count, code)
        except StorageError as e:
            logger.error(f"Error seeding databases: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

        return SeedAllResponse(
            success=True,
            summaries=[s.to_dict() for s in summaries],
            counts=counts
        )

    return app


app = create_app()


# Startup

if __name__ == "__main__":
    port = server_port()
    logger.info(f"Starting region latency demo on port {port}")

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=port,
        log_level="info",
        reload=False
    )
