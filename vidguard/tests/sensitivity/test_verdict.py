import itertools

import pytest

from vidguard.config.settings import SensitivityConfig
from vidguard.models import SafetyStatus
from vidguard.video_pipeline.core.sensitivity.verdict import VerdictPolicy, aggregate_verdict


def test_empty_scores_are_safe():
    assert aggregate_verdict([]) == SafetyStatus.SAFE


@pytest.mark.parametrize(
    "scores,expected",
    [
        ([0.1, 0.2, 0.3], SafetyStatus.SAFE),
        ([0.71], SafetyStatus.FLAGGED),
        ([0.5], SafetyStatus.SAFE),
        ([0.7, 0.1, 0.1], SafetyStatus.SAFE),
        ([0.5, 0.5], SafetyStatus.SAFE),
        ([0.51, 0.51], SafetyStatus.FLAGGED),
        ([0.6, 0.6], SafetyStatus.FLAGGED),
        ([0.0, 0.0, 0.9], SafetyStatus.FLAGGED),
    ],
)
def test_default_thresholds(scores, expected):
    assert aggregate_verdict(scores) == expected


def test_verdict_ignores_frame_order():
    scores = [0.1, 0.65, 0.4, 0.55]
    verdicts = {aggregate_verdict(list(p)) for p in itertools.permutations(scores)}
    assert len(verdicts) == 1


def test_same_max_and_mean_give_same_verdict():
    # both: max 0.6, mean 0.4
    first = [0.6, 0.3, 0.3]
    second = [0.6, 0.5, 0.1]
    for policy in (VerdictPolicy(), VerdictPolicy(0.4, 0.4), VerdictPolicy(0.59, 0.39)):
        assert aggregate_verdict(first, policy) == aggregate_verdict(second, policy)


def test_policy_from_config():
    config = SensitivityConfig(max_score_threshold=0.4, mean_score_threshold=0.4)
    policy = VerdictPolicy.from_config(config)

    assert policy == VerdictPolicy(0.4, 0.4)
    assert aggregate_verdict([0.45], policy) == SafetyStatus.FLAGGED
    assert aggregate_verdict([0.45]) == SafetyStatus.SAFE
