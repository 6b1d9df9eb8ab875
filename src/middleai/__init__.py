"""
middleai - OpenTelemetry tracing and user feedback for LLM applications.
"""

from .config import MiddleAIConfig
from .telemetry import FeedbackType, LLMCall, MiddleAITracer, ModelParamsCycleError

__version__ = "0.3.0"

__all__ = [
    "FeedbackType",
    "LLMCall",
    "MiddleAIConfig",
    "MiddleAITracer",
    "ModelParamsCycleError",
    "__version__",
]
