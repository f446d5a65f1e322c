"""Claude (Anthropic) LLM Client"""

from typing import Iterator

from yawn.llm.base import (
    TextGenerator,
    LLMError,
    AuthenticationError,
    GenerationTimeoutError,
    RateLimitError,
    SafetyError,
    SYSTEM_PROMPT,
    build_prompt,
)


class ClaudeClient(TextGenerator):
    """Claude API client that streams the generated message."""

    MAX_OUTPUT_TOKENS = 1024

    def __init__(self, api_key: str = "", client=None):
        self.api_key = api_key
        self._client = client

    @property
    def name(self) -> str:
        return "Claude"

    def set_api_key(self, api_key: str) -> None:
        self.api_key = api_key
        self._client = None

    def _get_client(self):
        if self._client is not None:
            return self._client
        if not self.api_key:
            raise AuthenticationError("No API key configured")

        try:
            from anthropic import Anthropic
        except ImportError:
            raise LLMError(
                "Anthropic SDK not installed. Run:\n"
                "  pip install anthropic"
            )
        # Retrying is decided by the caller, which owns the overall deadline
        self._client = Anthropic(api_key=self.api_key, max_retries=0)
        return self._client

    def _translate_error(self, e: Exception, model: str, timeout: float) -> LLMError:
        import anthropic

        if isinstance(e, anthropic.APITimeoutError):
            return GenerationTimeoutError(f"Request timed out after {timeout:.0f}s")
        if isinstance(e, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
            return AuthenticationError("Invalid API key or authentication failed")
        if isinstance(e, anthropic.RateLimitError):
            return RateLimitError("API rate limit exceeded. Please try again later")
        if isinstance(e, anthropic.NotFoundError):
            return LLMError(f"Model '{model}' not found")
        if isinstance(e, anthropic.APIConnectionError):
            return LLMError(f"Could not reach the Claude API: {e}")
        if isinstance(e, anthropic.APIStatusError):
            return LLMError(f"Claude API error ({e.status_code}): {e.message}")
        if isinstance(e, anthropic.APIError):
            return LLMError(f"Claude API error: {e.message}")
        return LLMError(f"Claude request failed: {e}")

    def _messages(self, prompt: str) -> list[dict]:
        return [{"role": "user", "content": prompt}]

    def generate(self, model: str, prompt_template: str, diff: str,
                 max_tokens: int, temperature: float, timeout: float) -> Iterator[str]:
        client = self._get_client()
        import anthropic

        prompt = build_prompt(prompt_template, diff)
        try:
            with client.messages.stream(
                model=model,
                max_tokens=max(1, min(max_tokens, self.MAX_OUTPUT_TOKENS)),
                temperature=temperature,
                system=SYSTEM_PROMPT,
                messages=self._messages(prompt),
                timeout=timeout,
            ) as stream:
                for text in stream.text_stream:
                    if text:
                        yield text
                final = stream.get_final_message()
        except anthropic.APIError as e:
            raise self._translate_error(e, model, timeout) from e

        if final.stop_reason == "refusal":
            raise SafetyError("Response blocked by the model's safety policy")

    def count_tokens(self, model: str, text: str, timeout: float) -> int:
        client = self._get_client()
        import anthropic

        try:
            result = client.messages.count_tokens(
                model=model,
                system=SYSTEM_PROMPT,
                messages=self._messages(text),
                timeout=timeout,
            )
        except anthropic.APIError as e:
            raise self._translate_error(e, model, timeout) from e
        return result.input_tokens
