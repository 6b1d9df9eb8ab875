"""
Telemetry -- LLM call tracing for Middle AI via OpenTelemetry.

Provides one span per model invocation, flattened model parameters as
span attributes, and user feedback submission.
"""

from .feedback import FeedbackRecord, FeedbackType, post_feedback
from .flatten import (
    ModelParamsCycleError,
    ModelParamsKeyCollisionError,
    flatten_model_params,
    unflatten_attributes,
)
from .provider import build_exporter, build_tracer_provider
from .tracer import LLMCall, MiddleAITracer

__all__ = [
    "FeedbackRecord",
    "FeedbackType",
    "LLMCall",
    "MiddleAITracer",
    "ModelParamsCycleError",
    "ModelParamsKeyCollisionError",
    "build_exporter",
    "build_tracer_provider",
    "flatten_model_params",
    "post_feedback",
    "unflatten_attributes",
]
