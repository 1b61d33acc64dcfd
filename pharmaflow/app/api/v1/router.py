from fastapi import APIRouter

from pharmaflow.app.api.v1.endpoints.health import router as health_router
from pharmaflow.app.api.v1.endpoints.catalog import router as catalog_router
from pharmaflow.app.api.v1.endpoints.orders import router as orders_router
from pharmaflow.app.api.v1.endpoints.fulfillment import router as fulfillment_router
from pharmaflow.app.api.v1.endpoints.processes import router as processes_router
from pharmaflow.app.api.v1.endpoints.costs import router as costs_router
from pharmaflow.app.api.v1.endpoints.archives import router as archives_router
from pharmaflow.app.api.v1.endpoints.management import router as management_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(catalog_router, tags=["catalog"])
router.include_router(orders_router, tags=["orders"])
router.include_router(fulfillment_router, tags=["fulfillment"])
router.include_router(processes_router, tags=["processes"])
router.include_router(costs_router, tags=["costs"])
router.include_router(archives_router, tags=["archives"])
router.include_router(management_router, tags=["management"])
