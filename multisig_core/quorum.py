"""
Quorum policy: how many distinct approvals a request needs.

The threshold is a whole percentage of the current validator count.
Fractional counts round up, so an 80% threshold is a true lower bound:
80% of 4 validators is 3.2, which requires 4 signatures.  The result is
clamped to ``[1, validator_count]``; a 0% threshold still needs one
approval.
"""

from __future__ import annotations

from multisig_core.errors import InvalidThreshold

MIN_THRESHOLD = 0
MAX_THRESHOLD = 100
DEFAULT_THRESHOLD = 80


def validate_threshold(threshold: object) -> int:
    """Return *threshold* if it is an integer percentage, else raise InvalidThreshold."""
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise InvalidThreshold(
            f"Threshold must be an integer percentage, got {threshold!r}",
            context={"threshold": repr(threshold)},
        )
    if not MIN_THRESHOLD <= threshold <= MAX_THRESHOLD:
        raise InvalidThreshold(
            f"Threshold {threshold} outside [{MIN_THRESHOLD}, {MAX_THRESHOLD}]",
            context={"threshold": threshold},
        )
    return threshold


def required_count(validator_count: int, threshold_percent: int) -> int:
    """Minimum number of distinct valid signatures for the given state."""
    if validator_count < 1:
        raise ValueError("At least one validator is required")
    validate_threshold(threshold_percent)
    # ceil without floats
    needed = (validator_count * threshold_percent + MAX_THRESHOLD - 1) // MAX_THRESHOLD
    return max(1, min(validator_count, needed))
