from rental_repairs.api.routes.tenant_requests import router as tenant_requests_router
from rental_repairs.api.routes.workers import router as workers_router

__all__ = [
    "tenant_requests_router",
    "workers_router",
]
