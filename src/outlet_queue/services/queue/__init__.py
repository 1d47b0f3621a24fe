"""Queue admission, position assignment and service transitions."""

from .admission import AdmissionController, format_token
from .estimator import estimate_wait
from .ledger import QueueLedger
from .service import QueueService, QueueSnapshot
from .transitions import ALLOWED_TRANSITIONS, ServiceTransitionEngine

__all__ = [
    "ALLOWED_TRANSITIONS",
    "AdmissionController",
    "QueueLedger",
    "QueueService",
    "QueueSnapshot",
    "ServiceTransitionEngine",
    "estimate_wait",
    "format_token",
]
