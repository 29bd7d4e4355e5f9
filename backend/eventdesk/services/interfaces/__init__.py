"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .admission import AdmissionStrategy, GateDecision
from .optimistic_admission import OptimisticAdmission

__all__ = ['AdmissionStrategy', 'GateDecision', 'OptimisticAdmission']
