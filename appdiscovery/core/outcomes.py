"""
Per-item outcomes shared by the batch operations.

Every batch (page import, reconciliation) reports one outcome per item;
aggregate counts are computed from that list, never tracked on the side.
"""

from collections import Counter
from enum import Enum
from typing import Dict, Iterable


class OutcomeStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


def count_outcomes(statuses: Iterable[OutcomeStatus]) -> Dict[str, int]:
    """
    Example:
        >>> count_outcomes([OutcomeStatus.OK, OutcomeStatus.FAILED, OutcomeStatus.OK])
        {'ok': 2, 'skipped': 0, 'failed': 1}
    """
    counts = Counter(OutcomeStatus(s).value for s in statuses)
    return {status.value: counts.get(status.value, 0) for status in OutcomeStatus}
