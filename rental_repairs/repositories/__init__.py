from rental_repairs.repositories.tenant_request_repository import TenantRequestRepository
from rental_repairs.repositories.worker_repository import WorkerRepository

__all__ = [
    "TenantRequestRepository",
    "WorkerRepository",
]
