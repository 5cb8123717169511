from __future__ import annotations


class PipelineError(Exception):
    """Base class for failures inside the answer pipeline."""

    stage: str = "pipeline"


class ProfileError(PipelineError):
    stage = "setup"


class ReformulationFailure(PipelineError):
    stage = "reformulate"


class FetchFailure(PipelineError):
    stage = "fetch"


class AggregationFailure(PipelineError):
    stage = "aggregate"


class RankingFailure(PipelineError):
    stage = "rank"


class GenerationFailure(PipelineError):
    stage = "generate"
