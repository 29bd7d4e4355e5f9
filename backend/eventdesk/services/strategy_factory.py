"""
Admission strategy factory.
Configures which seat admission gate to use.
"""

from typing import Optional

from eventdesk.core.config import get_settings
from eventdesk.services.interfaces.admission import AdmissionStrategy
from eventdesk.services.interfaces.optimistic_admission import OptimisticAdmission


def get_admission_strategy() -> AdmissionStrategy:
    """
    Get configured admission strategy.

    - optimistic (default): count-then-admit, the documented baseline
    - redis: atomic per-tier gate in front of the count

    Selected via the ADMISSION_STRATEGY env var.
    """
    strategy = get_settings().ADMISSION_STRATEGY

    if strategy == 'redis':
        from eventdesk.services.admission_service import RedisAdmission
        return RedisAdmission()
    return OptimisticAdmission()


# Singleton instance
_strategy: Optional[AdmissionStrategy] = None


def get_admission() -> AdmissionStrategy:
    """Get admission strategy singleton."""
    global _strategy
    if _strategy is None:
        _strategy = get_admission_strategy()
    return _strategy
