"""Evaluation job lifecycle.

QUEUED -> PROCESSING -> COMPLETED | FAILED. A job the queue re-invokes
after a failed attempt goes FAILED -> PROCESSING again; COMPLETED is final.
"""
from enum import Enum
from typing import Dict, FrozenSet

from domain.errors import InvalidStatusTransitionError


class JobStatus(str, Enum):
    QUEUED = "QUEUED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STATUSES: FrozenSet[JobStatus] = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

ALLOWED_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.PROCESSING}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.FAILED: frozenset({JobStatus.PROCESSING}),
    JobStatus.COMPLETED: frozenset(),
}


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    return JobStatus(target) in ALLOWED_TRANSITIONS[JobStatus(current)]


def ensure_transition(current: JobStatus, target: JobStatus) -> None:
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(JobStatus(current).value, JobStatus(target).value)
