"""Response evaluation for the autonomous flow."""

from .evaluator import (
    EVALUATE_RESPONSE_TOOL,
    EvaluationRequest,
    EvaluationResult,
    EvaluationState,
    LLMResponseEvaluator,
    evaluate_response,
    fallback_conclusion,
)

__all__ = [
    "EVALUATE_RESPONSE_TOOL",
    "EvaluationRequest",
    "EvaluationResult",
    "EvaluationState",
    "LLMResponseEvaluator",
    "evaluate_response",
    "fallback_conclusion",
]
