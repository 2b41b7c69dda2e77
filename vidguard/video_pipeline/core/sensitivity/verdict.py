from dataclasses import dataclass
from typing import Optional, Sequence

from vidguard.config.settings import SensitivityConfig
from vidguard.models import SafetyStatus


@dataclass(frozen=True)
class VerdictPolicy:
    """Thresholds a score sequence is judged against."""
    max_threshold: float = 0.7
    mean_threshold: float = 0.5

    @classmethod
    def from_config(cls, config: SensitivityConfig) -> "VerdictPolicy":
        return cls(
            max_threshold=config.max_score_threshold,
            mean_threshold=config.mean_score_threshold,
        )


def aggregate_verdict(scores: Sequence[float], policy: Optional[VerdictPolicy] = None) -> SafetyStatus:
    """
    Reduce per-frame scores to one verdict.

    An empty sequence carries no evidence of risk and is SAFE. Otherwise the
    video is FLAGGED iff max > max_threshold or mean > mean_threshold, so the
    result depends only on (max, mean) and not on frame order.
    """
    policy = policy or VerdictPolicy()
    if not scores:
        return SafetyStatus.SAFE

    highest = max(scores)
    mean = sum(scores) / len(scores)
    if highest > policy.max_threshold or mean > policy.mean_threshold:
        return SafetyStatus.FLAGGED
    return SafetyStatus.SAFE
