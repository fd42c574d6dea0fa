"""
API Handler for the Resource Manager Service

Provides HTTP endpoints for environment shutdown/startup, live status,
schedule management and CloudWatch/S3 cost optimization.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..clients import AwsClients
from ..config import ResourceManagerConfig
from ..exceptions import (
    ConfigurationError,
    ProductionGuardError,
    ResourceManagerError,
    ValidationError,
    error_message,
)
from ..models import ScheduleRequest
from ..optimization import CloudWatchOptimizer, S3Optimizer, format_cloudwatch_analysis, format_s3_analysis
from ..orchestrator import ResourceOrchestrator
from ..schedules import ScheduleManager

logger = logging.getLogger(__name__)

DETAILED_ERROR_ENVIRONMENTS = ("dev", "local")


class RouteError(Exception):
    """Wraps a failure raised inside a route together with the route's failure message."""

    def __init__(self, message: str, cause: BaseException):
        super().__init__(message)
        self.message = message
        self.cause = cause


def status_code_for(exc: BaseException) -> int:
    if isinstance(exc, ProductionGuardError):
        return 403
    if isinstance(exc, (ValidationError, ConfigurationError)):
        return 400
    return 500


def respond(message: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    """Success envelope: ``{"success": true, "message", "data"}``."""
    content: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        content["data"] = jsonable_encoder(data, by_alias=True)
    return JSONResponse(status_code=status_code, content=content)


def run_route(failure_message: str, action: str, fn: Callable[[], Any]) -> Any:
    try:
        return fn()
    except Exception as e:
        logger.error(
            f"{failure_message}: {error_message(e)}",
            extra={"component": "api", "action": action},
        )
        raise RouteError(failure_message, e) from e


def create_app(
    config: ResourceManagerConfig,
    orchestrator: Optional[ResourceOrchestrator] = None,
    schedules: Optional[ScheduleManager] = None,
    cloudwatch: Optional[CloudWatchOptimizer] = None,
    s3: Optional[S3Optimizer] = None,
) -> FastAPI:
    """Create FastAPI application with all endpoints."""

    app = FastAPI(
        title="Resource Manager API",
        description="Shutdown, startup and cost optimization for tagged AWS environments",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    clients = AwsClients(config.aws_region)
    orchestrator = orchestrator or ResourceOrchestrator(config, clients)
    schedules = schedules or ScheduleManager(config, clients)
    cloudwatch = cloudwatch or CloudWatchOptimizer(config, clients)
    s3 = s3 or S3Optimizer(config, clients)

    @app.get("/", tags=["Health"])
    def root():
        return {"message": f"{config.app_name} Server is working!"}

    @app.get("/api/health", tags=["Health"])
    def health_check():
        return {
            "status": "healthy",
            "service": config.app_name,
            "environment": config.environment,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # Manual triggers
    @app.post("/api/shutdown", tags=["Operations"])
    def manual_shutdown():
        logger.info("Manual shutdown triggered", extra={"component": "api", "action": "manual-shutdown"})
        result = run_route("Failed to shutdown resources", "manual-shutdown", orchestrator.shutdown_resources)
        return respond("Resources shutdown successfully", result)

    @app.post("/api/startup", tags=["Operations"])
    def manual_startup():
        logger.info("Manual startup triggered", extra={"component": "api", "action": "manual-startup"})
        result = run_route("Failed to startup resources", "manual-startup", orchestrator.startup_resources)
        return respond("Resources started successfully", result)

    @app.get("/api/status", tags=["Operations"])
    def manual_status():
        status = run_route("Failed to get resource status", "get-status", orchestrator.get_resource_status)
        return respond("Resource status retrieved successfully", status)

    router = APIRouter(prefix="/api/resource-manager")

    @router.post("/shutdown", tags=["Operations"])
    def scheduled_shutdown():
        logger.info("Scheduled shutdown triggered", extra={"component": "api", "action": "scheduled-shutdown"})
        result = run_route("Failed to shutdown resources", "scheduled-shutdown", orchestrator.shutdown_resources)
        return respond("Scheduled shutdown completed", result)

    @router.post("/startup", tags=["Operations"])
    def scheduled_startup():
        logger.info("Scheduled startup triggered", extra={"component": "api", "action": "scheduled-startup"})
        result = run_route("Failed to startup resources", "scheduled-startup", orchestrator.startup_resources)
        return respond("Scheduled startup completed", result)

    @router.get("/status", tags=["Operations"])
    def get_status():
        status = run_route("Failed to get status", "get-status", orchestrator.get_resource_status)
        return respond("Status retrieved successfully", status)

    # Schedules
    @router.get("/schedule", tags=["Schedules"])
    def list_schedules():
        items = run_route("Failed to get schedules", "get-schedules", schedules.list_schedules)
        return respond("Schedules retrieved successfully", items)

    @router.post("/schedule", tags=["Schedules"])
    def create_schedule(request: ScheduleRequest):
        response = run_route(
            "Failed to create schedule",
            "create-schedule",
            lambda: schedules.create_schedule(request.name, request.cron, request.action, request.environment),
        )
        data = {k: v for k, v in response.items() if k != "ResponseMetadata"}
        return respond("Schedule created successfully", data, status_code=201)

    @router.delete("/schedule/{schedule_id}", tags=["Schedules"])
    def delete_schedule(schedule_id: str):
        run_route("Failed to delete schedule", "delete-schedule", lambda: schedules.delete_schedule(schedule_id))
        return respond("Schedule deleted successfully")

    # CloudWatch
    @router.get("/cloudwatch/analyze", tags=["CloudWatch"])
    def analyze_cloudwatch(region: Optional[str] = Query(None, description="Target AWS region")):
        analysis = run_route(
            "Failed to analyze CloudWatch costs",
            "analyze-cloudwatch-costs",
            lambda: cloudwatch.analyze_costs(region),
        )
        return respond("CloudWatch cost analysis completed", format_cloudwatch_analysis(analysis))

    @router.post("/cloudwatch/optimize", tags=["CloudWatch"])
    def optimize_cloudwatch(region: Optional[str] = Query(None, description="Target AWS region")):
        result = run_route(
            "Failed to optimize CloudWatch logs",
            "optimize-cloudwatch-logs",
            lambda: cloudwatch.optimize_logs(region),
        )
        return respond("CloudWatch optimization completed", result)

    @router.get("/cloudwatch/alarms", tags=["CloudWatch"])
    def cloudwatch_alarms(region: Optional[str] = Query(None, description="Target AWS region")):
        alarms = run_route(
            "Failed to get CloudWatch alarms",
            "get-cloudwatch-alarms",
            lambda: cloudwatch.get_alarms(region),
        )
        return respond("CloudWatch alarms retrieved successfully", {"alarms": alarms, "count": len(alarms)})

    # S3
    @router.get("/s3/analyze", tags=["S3"])
    def analyze_s3(region: Optional[str] = Query(None, description="Target AWS region")):
        analysis = run_route("Failed to analyze S3 costs", "analyze-s3-costs", lambda: s3.analyze_costs(region))
        return respond("S3 cost analysis completed", format_s3_analysis(analysis))

    @router.post("/s3/optimize", tags=["S3"])
    def optimize_s3(region: Optional[str] = Query(None, description="Target AWS region")):
        result = run_route("Failed to optimize S3 buckets", "optimize-s3-buckets", lambda: s3.optimize_buckets(region))
        return respond("S3 optimization completed", result)

    app.include_router(router)

    # Exception handlers
    @app.exception_handler(RouteError)
    async def route_error_handler(request: Request, exc: RouteError):
        cause = exc.cause
        status_code = status_code_for(cause)
        # guard and input errors keep their own message
        message = cause.message if isinstance(cause, ResourceManagerError) and status_code < 500 else exc.message
        content: dict[str, Any] = {"success": False, "message": message}
        if config.environment in DETAILED_ERROR_ENVIRONMENTS:
            content["error"] = error_message(cause)
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Validation error", "error": str(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        content: dict[str, Any] = {"success": False, "message": "Internal server error"}
        if config.environment in DETAILED_ERROR_ENVIRONMENTS:
            content["error"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    return app


class APIServer:
    """API Server wrapper for easier deployment."""

    def __init__(self, config: ResourceManagerConfig):
        self.config = config
        self.app = create_app(config)

    def run(self, host: Optional[str] = None, port: Optional[int] = None, reload: bool = False):
        """Run the API server."""
        host = host or self.config.api_host
        port = port or self.config.api_port
        logger.info(f"Starting Resource Manager API server on {host}:{port}")

        uvicorn.run(
            self.app,
            host=host,
            port=port,
            reload=reload,
            log_level=self.config.log_level.lower(),
        )
