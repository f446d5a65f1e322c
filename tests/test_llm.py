"""
Tests for prompt assembly, token estimates and the Claude client.

The Anthropic SDK client is replaced with a small scripted double; only the
SDK's exception classes are used for real.

Run with:
    pytest tests/test_llm.py -v
"""

from types import SimpleNamespace

import anthropic
import httpx
import pytest

from yawn.config import DEFAULT_PROMPT, DIFF_PLACEHOLDER
from yawn.llm import (
    AuthenticationError,
    ClaudeClient,
    GenerationTimeoutError,
    LLMError,
    RateLimitError,
    SafetyError,
    SYSTEM_PROMPT,
    build_prompt,
    estimate_token_count,
)

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def status_error(cls, code, message="error"):
    return cls(message, response=httpx.Response(code, request=REQUEST), body=None)


# ---------------------------------------------------------------------------
# Prompt helpers
# ---------------------------------------------------------------------------

class TestBuildPrompt:

    def test_replaces_placeholder(self):
        assert build_prompt(f"Before\n{DIFF_PLACEHOLDER}\nAfter", "DIFF") == "Before\nDIFF\nAfter"

    def test_replaces_only_first_placeholder(self):
        template = f"{DIFF_PLACEHOLDER} and {DIFF_PLACEHOLDER}"
        assert build_prompt(template, "X") == f"X and {DIFF_PLACEHOLDER}"

    def test_appends_when_placeholder_missing(self):
        assert build_prompt("Describe this:  \n", "DIFF") == "Describe this:\n\nDIFF"

    def test_default_prompt_ends_with_diff(self):
        assert build_prompt(DEFAULT_PROMPT, "+added line").endswith("+added line")


class TestEstimateTokenCount:

    @pytest.mark.parametrize("text, expected", [
        ("", 0),
        ("a", 1),
        ("abcd", 1),
        ("abcde", 2),
        ("x" * 400, 100),
    ])
    def test_four_chars_per_token(self, text, expected):
        assert estimate_token_count(text) == expected


# ---------------------------------------------------------------------------
# Claude client
# ---------------------------------------------------------------------------

class FakeStream:

    def __init__(self, chunks, stop_reason="end_turn", error=None):
        self.text_stream = self._iterate(chunks, error)
        self.stop_reason = stop_reason

    @staticmethod
    def _iterate(chunks, error):
        yield from chunks
        if error is not None:
            raise error

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def get_final_message(self):
        return SimpleNamespace(stop_reason=self.stop_reason)


class FakeMessages:

    def __init__(self, stream=None, error=None, input_tokens=42):
        self._stream = stream
        self._error = error
        self._input_tokens = input_tokens
        self.stream_kwargs = None
        self.count_kwargs = None

    def stream(self, **kwargs):
        self.stream_kwargs = kwargs
        if self._error is not None:
            raise self._error
        return self._stream

    def count_tokens(self, **kwargs):
        self.count_kwargs = kwargs
        if self._error is not None:
            raise self._error
        return SimpleNamespace(input_tokens=self._input_tokens)


def make_client(**kwargs):
    messages = FakeMessages(**kwargs)
    return ClaudeClient(api_key="sk-test", client=SimpleNamespace(messages=messages)), messages


def generate(client, **overrides):
    params = dict(
        model="claude-test",
        prompt_template=f"Describe:\n{DIFF_PLACEHOLDER}",
        diff="+new line",
        max_tokens=200000,
        temperature=0.1,
        timeout=10.0,
    )
    params.update(overrides)
    return list(client.generate(**params))


class TestClaudeGenerate:

    def test_streams_chunks(self):
        client, _ = make_client(stream=FakeStream(["feat: ", "", "add parser"]))
        assert generate(client) == ["feat: ", "add parser"]

    def test_request_parameters(self):
        client, messages = make_client(stream=FakeStream(["ok"]))
        generate(client, temperature=0.3, timeout=7.0)

        kwargs = messages.stream_kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == ClaudeClient.MAX_OUTPUT_TOKENS
        assert kwargs["temperature"] == 0.3
        assert kwargs["timeout"] == 7.0
        assert kwargs["system"] == SYSTEM_PROMPT
        assert kwargs["messages"] == [{"role": "user", "content": "Describe:\n+new line"}]

    def test_small_budget_caps_output(self):
        client, messages = make_client(stream=FakeStream(["ok"]))
        generate(client, max_tokens=300)
        assert messages.stream_kwargs["max_tokens"] == 300

    def test_refusal_is_a_safety_error(self):
        client, _ = make_client(stream=FakeStream([], stop_reason="refusal"))
        with pytest.raises(SafetyError):
            generate(client)

    def test_timeout(self):
        client, _ = make_client(error=anthropic.APITimeoutError(request=REQUEST))
        with pytest.raises(GenerationTimeoutError):
            generate(client)

    def test_timeout_mid_stream(self):
        error = anthropic.APITimeoutError(request=REQUEST)
        client, _ = make_client(stream=FakeStream(["feat"], error=error))
        chunks = []
        with pytest.raises(GenerationTimeoutError):
            for chunk in client.generate("m", "t", "d", 100, 0.1, 5.0):
                chunks.append(chunk)
        assert chunks == ["feat"]

    @pytest.mark.parametrize("cls, code, expected", [
        (anthropic.AuthenticationError, 401, AuthenticationError),
        (anthropic.PermissionDeniedError, 403, AuthenticationError),
        (anthropic.RateLimitError, 429, RateLimitError),
        (anthropic.NotFoundError, 404, LLMError),
        (anthropic.InternalServerError, 500, LLMError),
    ])
    def test_status_errors(self, cls, code, expected):
        client, _ = make_client(error=status_error(cls, code))
        with pytest.raises(expected):
            generate(client)

    def test_unknown_model_is_named(self):
        client, _ = make_client(error=status_error(anthropic.NotFoundError, 404))
        with pytest.raises(LLMError, match="claude-test"):
            generate(client)

    def test_connection_error(self):
        client, _ = make_client(error=anthropic.APIConnectionError(request=REQUEST))
        with pytest.raises(LLMError, match="Could not reach"):
            generate(client)

    def test_missing_api_key(self):
        with pytest.raises(AuthenticationError):
            generate(ClaudeClient(api_key=""))


class TestClaudeClientSetup:

    def test_count_tokens(self):
        client, messages = make_client(input_tokens=321)
        assert client.count_tokens("claude-test", "hello", 5.0) == 321
        assert messages.count_kwargs["timeout"] == 5.0
        assert messages.count_kwargs["messages"] == [{"role": "user", "content": "hello"}]

    def test_count_tokens_error(self):
        client, _ = make_client(error=status_error(anthropic.AuthenticationError, 401))
        with pytest.raises(AuthenticationError):
            client.count_tokens("claude-test", "hello", 5.0)

    def test_sdk_client_built_without_retries(self):
        sdk_client = ClaudeClient(api_key="sk-test")._get_client()
        assert isinstance(sdk_client, anthropic.Anthropic)
        assert sdk_client.max_retries == 0

    def test_set_api_key_drops_cached_client(self):
        client, _ = make_client(stream=FakeStream(["ok"]))
        client.set_api_key("sk-other")
        assert client.api_key == "sk-other"
        assert client._client is None

    def test_name(self):
        assert ClaudeClient().name == "Claude"
