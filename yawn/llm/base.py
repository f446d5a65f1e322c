"""LLM Base Classes and Shared Code"""

from abc import ABC, abstractmethod
from typing import Iterator

from yawn.config import DIFF_PLACEHOLDER


SYSTEM_PROMPT = """You are a senior software engineer who writes precise, informative git commit messages.
The diff shows WHAT changed; your message explains WHY. Every word earns its place.
Reply with the commit message only."""


class LLMError(Exception):
    """Raised when LLM operations fail."""
    pass


class TokenLimitError(LLMError):
    """The prompt is larger than the configured token budget."""

    def __init__(self, estimated: int, limit: int):
        super().__init__(f"Estimated token count ({estimated}) exceeds limit ({limit})")
        self.estimated = estimated
        self.limit = limit


class AuthenticationError(LLMError):
    pass


class RateLimitError(LLMError):
    pass


class SafetyError(LLMError):
    """The service declined to answer."""
    pass


class GenerationTimeoutError(LLMError):
    pass


class EmptyResponseError(LLMError):
    """The stream finished without producing any text."""
    pass


def build_prompt(template: str, diff: str) -> str:
    """Insert the diff at the placeholder, or append it when there is none."""
    if DIFF_PLACEHOLDER in template:
        return template.replace(DIFF_PLACEHOLDER, diff, 1)
    return f"{template.rstrip()}\n\n{diff}"


def estimate_token_count(text: str) -> int:
    """Rough token estimate: about four characters per token."""
    return (len(text) + 3) // 4


class TextGenerator(ABC):
    """Abstract base for commit message generators."""

    @abstractmethod
    def generate(self, model: str, prompt_template: str, diff: str,
                 max_tokens: int, temperature: float, timeout: float) -> Iterator[str]:
        """Stream the message as text chunks. Errors may surface while iterating."""
        pass

    @abstractmethod
    def count_tokens(self, model: str, text: str, timeout: float) -> int:
        pass

    def set_api_key(self, api_key: str) -> None:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass
