from .frame_extractor import FrameExtractor, build_timestamps
from .frame_scorer import FrameScorer, HeuristicFrameScorer
from .verdict import VerdictPolicy, aggregate_verdict
from .job_registry import JobRegistry
from .sensitivity_pipeline import SensitivityPipeline

__all__ = [
    "FrameExtractor",
    "build_timestamps",
    "FrameScorer",
    "HeuristicFrameScorer",
    "VerdictPolicy",
    "aggregate_verdict",
    "JobRegistry",
    "SensitivityPipeline",
]
