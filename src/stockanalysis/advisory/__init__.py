"""Advisory prompt synthesis, recommendation scoring and text generation."""

from .chat_client import ChatCompletionClient, ChatCompletionResponse, TextGenerator
from .synthesizer import (
    SYSTEM_PROMPT,
    build_prompt,
    calculate_confidence,
    extract_recommendation,
    synthesize,
)

__all__ = [
    "ChatCompletionClient",
    "ChatCompletionResponse",
    "SYSTEM_PROMPT",
    "TextGenerator",
    "build_prompt",
    "calculate_confidence",
    "extract_recommendation",
    "synthesize",
]
