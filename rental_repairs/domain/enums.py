from enum import Enum


class TenantRequestStatus(str, Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    SCHEDULED = "Scheduled"
    DONE = "Done"
    FAILED = "Failed"
    DECLINED = "Declined"
    CLOSED = "Closed"

    @property
    def is_terminal(self) -> bool:
        return self is TenantRequestStatus.CLOSED


# Allowed lifecycle moves; Closed has no outgoing edges.
ALLOWED_TRANSITIONS = {
    TenantRequestStatus.DRAFT: {TenantRequestStatus.SUBMITTED},
    TenantRequestStatus.SUBMITTED: {TenantRequestStatus.SCHEDULED, TenantRequestStatus.DECLINED},
    TenantRequestStatus.SCHEDULED: {TenantRequestStatus.DONE, TenantRequestStatus.FAILED},
    TenantRequestStatus.FAILED: {TenantRequestStatus.SCHEDULED},
    TenantRequestStatus.DONE: {TenantRequestStatus.CLOSED},
    TenantRequestStatus.DECLINED: {TenantRequestStatus.CLOSED},
    TenantRequestStatus.CLOSED: set(),
}

# Requests that still need attention from the superintendent or a worker.
PENDING_STATUSES = frozenset({
    TenantRequestStatus.SUBMITTED,
    TenantRequestStatus.SCHEDULED,
    TenantRequestStatus.FAILED,
})


class TenantRequestUrgency(str, Enum):
    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"
    CRITICAL = "Critical"
    EMERGENCY = "Emergency"

    @property
    def rank(self) -> int:
        return _URGENCY_ORDER.index(self)

    @property
    def is_emergency(self) -> bool:
        """Critical and Emergency requests may use the emergency override."""
        return self in (TenantRequestUrgency.CRITICAL, TenantRequestUrgency.EMERGENCY)

    @property
    def expected_resolution_hours(self) -> int:
        return _RESOLUTION_HOURS[self]

    def __lt__(self, other):
        if not isinstance(other, TenantRequestUrgency):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, TenantRequestUrgency):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, TenantRequestUrgency):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, TenantRequestUrgency):
            return NotImplemented
        return self.rank >= other.rank


_URGENCY_ORDER = [
    TenantRequestUrgency.LOW,
    TenantRequestUrgency.NORMAL,
    TenantRequestUrgency.HIGH,
    TenantRequestUrgency.CRITICAL,
    TenantRequestUrgency.EMERGENCY,
]

_RESOLUTION_HOURS = {
    TenantRequestUrgency.EMERGENCY: 2,
    TenantRequestUrgency.CRITICAL: 4,
    TenantRequestUrgency.HIGH: 24,
    TenantRequestUrgency.NORMAL: 72,
    TenantRequestUrgency.LOW: 168,
}


class AssignmentStatus(str, Enum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    FAILED = "Failed"

    @property
    def is_active(self) -> bool:
        """Only active assignments count toward capacity."""
        return self in (AssignmentStatus.SCHEDULED, AssignmentStatus.IN_PROGRESS)


ASSIGNMENT_TRANSITIONS = {
    AssignmentStatus.SCHEDULED: {
        AssignmentStatus.IN_PROGRESS,
        AssignmentStatus.COMPLETED,
        AssignmentStatus.FAILED,
        AssignmentStatus.CANCELLED,
    },
    AssignmentStatus.IN_PROGRESS: {
        AssignmentStatus.COMPLETED,
        AssignmentStatus.FAILED,
        AssignmentStatus.CANCELLED,
    },
    AssignmentStatus.COMPLETED: set(),
    AssignmentStatus.CANCELLED: set(),
    AssignmentStatus.FAILED: set(),
}
