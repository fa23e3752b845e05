#!/usr/bin/env python3
"""
Nutrition Estimation API
FastAPI application exposing per-serving nutrition estimates for dishes.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional

import structlog
import uvicorn
from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from dish_nutrition.api.error_handling import (
    APIErrorHandler, bad_request_response, init_error_tracking, internal_error_response
)
from dish_nutrition.api.monitoring_logging import (
    RequestMonitoringMiddleware, configure_logging, metrics_payload, record_estimation,
    record_reference_data
)
from dish_nutrition.config import EstimatorConfig
from dish_nutrition.nutrition_estimator import NutritionEstimator

logger = structlog.get_logger(__name__)

API_VERSION = "1.0.0"
API_TITLE = "Dish Nutrition API"
API_DESCRIPTION = "Estimates per-serving nutrition facts for Indian dishes"


# Pydantic Models
class NutritionRequest(BaseModel):
    """Request model for a nutrition estimate."""
    dishName: Optional[str] = Field(None, description="Name of the dish, e.g. 'Palak Paneer'")


class NutrientsResponse(BaseModel):
    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float


class IngredientUsedResponse(BaseModel):
    ingredient: str
    quantity: str


class ConfidenceNoteResponse(BaseModel):
    stage: str
    subject: str
    message: str


class EstimationResponse(BaseModel):
    """Response model for a nutrition estimate."""
    dish_name: str
    dish_type: str
    nutrition_per_serving: NutrientsResponse
    serving_unit: str
    ingredients_used: List[IngredientUsedResponse]
    total_dish_weight_g: float
    serving_size_g: float
    confidence_notes: List[ConfidenceNoteResponse] = Field(default_factory=list)
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str
    version: str
    timestamp: datetime
    reference_data: Dict[str, int]


def get_estimator(request: Request) -> NutritionEstimator:
    """Shared estimator stored on the application state."""
    estimator = request.app.state.estimator
    if estimator is None:
        estimator = NutritionEstimator(config=request.app.state.config)
        request.app.state.estimator = estimator
    return estimator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load reference data once before serving requests."""
    if app.state.estimator is None:
        logger.info("Initializing nutrition estimator...")
        app.state.estimator = NutritionEstimator(config=app.state.config)
    record_reference_data(app.state.estimator.reference_data.summary())
    logger.info("Nutrition estimator ready")
    yield
    logger.info("Shutting down nutrition API")


def create_app(estimator: Optional[NutritionEstimator] = None,
               config: Optional[EstimatorConfig] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        estimator: Estimator to serve (built from config on startup if omitted)
        config: Service configuration (environment defaults if omitted)
    """
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.config = config or (estimator.config if estimator else EstimatorConfig.from_env())
    app.state.estimator = estimator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(RequestMonitoringMiddleware())
    APIErrorHandler.register(app)

    @app.post("/nutrition", response_model=EstimationResponse, response_model_exclude_none=True)
    async def estimate_nutrition(payload: Optional[NutritionRequest] = None,
                                 estimator: NutritionEstimator = Depends(get_estimator)):
        """Estimate nutrition for one standard serving of a dish."""
        dish_name = (payload.dishName or "").strip() if payload else ""
        if not dish_name:
            return bad_request_response("Missing dishName in request body")

        log = logger.bind(dish_name=dish_name)
        start_time = time.time()
        try:
            result = await run_in_threadpool(estimator.estimate, dish_name)
        except Exception as e:
            return internal_error_response(e)

        record_estimation(result, time.time() - start_time)
        log.info("Estimated nutrition", dish_type=result.dish_type,
                 notes=len(result.confidence_notes), success=result.success)
        return result.to_dict()

    @app.get("/health", response_model=HealthResponse)
    async def health_check(estimator: NutritionEstimator = Depends(get_estimator)):
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            version=API_VERSION,
            timestamp=datetime.now(timezone.utc),
            reference_data=estimator.reference_data.summary(),
        )

    @app.get("/metrics")
    async def get_metrics():
        """Prometheus metrics endpoint."""
        body, content_type = metrics_payload()
        return Response(body, media_type=content_type)

    return app


app = create_app()


def main():
    """Run the API server with settings from the environment."""
    config = EstimatorConfig.from_env()
    configure_logging(config.log_level, config.log_format)
    init_error_tracking(config.sentry_dsn)
    uvicorn.run(
        create_app(config=config),
        host=config.api_host,
        port=config.api_port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
