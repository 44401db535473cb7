from fastapi import APIRouter
from stockaudit.api.v1.endpoints.audit import counts
from stockaudit.api.v1.endpoints.schedule import categories, schedule_configs, schedule_items

api_router = APIRouter()

# Audit routes
api_router.include_router(counts.router, prefix="/audit/counts", tags=["Audit"])

# Schedule routes
api_router.include_router(categories.router, prefix="/schedule/categories", tags=["Schedule"])
api_router.include_router(schedule_configs.router, prefix="/schedule/configs", tags=["Schedule"])
api_router.include_router(schedule_items.router, prefix="/schedule/items", tags=["Schedule"])
