# Import all models so they're registered with Base
from rental_repairs.models.tenant_request import TenantRequestRecord
from rental_repairs.models.worker import AssignmentRecord, WorkerRecord

__all__ = [
    "TenantRequestRecord",
    "WorkerRecord",
    "AssignmentRecord",
]
