"""Configuration fields, defaults and per-type parsing."""

import math
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Callable, Optional

ENV_PREFIX = "YAWN_"
DIFF_PLACEHOLDER = "!YAWNDIFFPLACEHOLDER!"

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_FALLBACK_MODEL = "claude-3-5-haiku-20241022"
DEFAULT_MAX_TOKENS = 200000
DEFAULT_TIMEOUT_SECONDS = 10
DEFAULT_TEMPERATURE = 0.1
DEFAULT_PUSH_COMMAND = "git push origin HEAD"

DEFAULT_PROMPT = f"""Generate a commit message for the diff below.

- Follow the Conventional Commits specification (https://www.conventionalcommits.org/en/v1.0.0/)
- Use only these types: fix, feat, docs, style, refactor, perf, test, build, ci, chore
- Type, scope and description start with a lowercase letter
- Scope is a noun naming a section of the codebase (e.g. api, core, ui, auth)
- Keep the description under 50 characters and focus on the ONE main change
- Prefer the terminology used in the diff
- Body: one or two sentences on WHY and WHAT, a blank line, then one bullet (-) per change
- Never use gitmoji
- Output only the commit message text: no backticks, no quotes, no commentary

Structure:
<type>[optional scope]: <description>

[optional body]

[optional footer(s)]

Example:
refactor(interactors): simplify strategy generation

Centralize strategy generation in a single orchestrator to make it easier to follow.

- Replace StrategyGeneratorInteractor with StrategyGenerationOrchestrator
- Remove MultiprocessingStrategyGenerator
- Add ResultsProcessor to store results

Here is the diff to analyze:

{DIFF_PLACEHOLDER}"""


class Source(str, Enum):
    """Configuration tier that supplied a value, lowest precedence first."""
    DEFAULT = "default"
    USER = "user"
    PROJECT = "project"
    ENV = "env"
    FLAG = "flag"

    def __str__(self) -> str:
        return self.value


_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off"}


def _parse_bool(raw: str) -> bool:
    word = raw.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _check_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_float(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class FieldKind(Enum):
    """Value type of a field: (type name, env parser, file value check)."""
    STR = ("string", str, lambda v: isinstance(v, str))
    INT = ("integer", lambda raw: int(raw.strip()), _check_int)
    BOOL = ("boolean", _parse_bool, lambda v: isinstance(v, bool))
    FLOAT = ("float", lambda raw: float(raw.strip()), _check_float)

    def __init__(self, type_name: str, parse: Callable[[str], Any], accepts: Callable[[Any], bool]):
        self.type_name = type_name
        self.parse = parse
        self.accepts = accepts

    def coerce(self, value: Any) -> Any:
        """Normalize a value that passed `accepts` (TOML ints for floats)."""
        if self is FieldKind.FLOAT:
            return float(value)
        return value


@dataclass(frozen=True)
class Field:
    name: str
    kind: FieldKind
    default: Any
    secret: bool = False
    multiline: bool = False
    positive: bool = False

    @property
    def env_var(self) -> str:
        return ENV_PREFIX + self.name.upper()

    def parse_env(self, raw: str) -> Optional[Any]:
        """Parse an environment string, or None when it does not parse or is out of range."""
        try:
            value = self.kind.parse(raw)
        except ValueError:
            return None
        if self.kind is FieldKind.FLOAT and not math.isfinite(value):
            return None
        if self.positive and value <= 0:
            return None
        return value


# Single source of truth for every setting: order here is report order.
FIELDS: tuple[Field, ...] = (
    Field("api_key", FieldKind.STR, "", secret=True),
    Field("model", FieldKind.STR, DEFAULT_MODEL),
    Field("fallback_model", FieldKind.STR, DEFAULT_FALLBACK_MODEL),
    Field("max_tokens", FieldKind.INT, DEFAULT_MAX_TOKENS, positive=True),
    Field("request_timeout_seconds", FieldKind.INT, DEFAULT_TIMEOUT_SECONDS, positive=True),
    Field("temperature", FieldKind.FLOAT, DEFAULT_TEMPERATURE),
    Field("prompt", FieldKind.STR, DEFAULT_PROMPT, multiline=True),
    Field("auto_stage", FieldKind.BOOL, False),
    Field("auto_push", FieldKind.BOOL, False),
    Field("push_command", FieldKind.STR, DEFAULT_PUSH_COMMAND),
    Field("verbose", FieldKind.BOOL, False),
    Field("wait_for_ssh_keys", FieldKind.BOOL, False),
)

FIELDS_BY_NAME = {f.name: f for f in FIELDS}


@dataclass(frozen=True)
class Config:
    """Fully resolved configuration. Every field always has a value."""
    api_key: str = ""
    model: str = DEFAULT_MODEL
    fallback_model: str = DEFAULT_FALLBACK_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    request_timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    temperature: float = DEFAULT_TEMPERATURE
    prompt: str = DEFAULT_PROMPT
    auto_stage: bool = False
    auto_push: bool = False
    push_command: str = DEFAULT_PUSH_COMMAND
    verbose: bool = False
    wait_for_ssh_keys: bool = False

    @property
    def request_timeout(self) -> float:
        return float(self.request_timeout_seconds)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}
