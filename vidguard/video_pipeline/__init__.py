from .core.sensitivity import SensitivityPipeline, JobRegistry, FrameExtractor, HeuristicFrameScorer

__all__ = ["SensitivityPipeline", "JobRegistry", "FrameExtractor", "HeuristicFrameScorer"]
