"""Enum types mirroring the text columns of the ``candidates`` schema."""

from enum import Enum


class CandidateStatus(str, Enum):
    """Availability of a candidate for new placements."""
    available = "Available"
    not_available = "Not Available"


class StatusAction(str, Enum):
    """Workflow actions that mutate the status/blacklist/hired triple."""
    hired = "hired"
    blacklist = "blacklist"
    availability = "availability"


class ProgressEventType(str, Enum):
    """Line types of the streamed migration protocol."""
    progress = "progress"
    error = "error"
    complete = "complete"


class UserRole(str, Enum):
    """Dashboard user roles stored in ``user_profiles.role``."""
    admin = "admin"
    user = "user"
