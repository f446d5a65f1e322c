"""LLM Client Package"""

from yawn.llm.base import (
    TextGenerator,
    LLMError,
    TokenLimitError,
    AuthenticationError,
    RateLimitError,
    SafetyError,
    GenerationTimeoutError,
    EmptyResponseError,
    SYSTEM_PROMPT,
    build_prompt,
    estimate_token_count,
)
from yawn.llm.claude import ClaudeClient

__all__ = [
    "TextGenerator",
    "LLMError",
    "TokenLimitError",
    "AuthenticationError",
    "RateLimitError",
    "SafetyError",
    "GenerationTimeoutError",
    "EmptyResponseError",
    "ClaudeClient",
    "SYSTEM_PROMPT",
    "build_prompt",
    "estimate_token_count",
]
