"""
Config Files

Locating, reading and writing the TOML documents that feed configuration:

1. User document:    <user config dir>/yawn/config.toml (or $YAWN_CONFIG_DIR/config.toml)
2. Project document: .yawn.toml in the working directory or any parent

Writes go through a temp file and an atomic rename so an interrupted write
never leaves a truncated document behind.
"""

import json
import os
import re
import tempfile
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import platformdirs

from yawn import APP_NAME
from yawn.config.fields import FIELDS, FIELDS_BY_NAME, ENV_PREFIX

PROJECT_CONFIG_NAME = ".yawn.toml"
USER_CONFIG_FILENAME = "config.toml"
CONFIG_DIR_ENV = "YAWN_CONFIG_DIR"


class ConfigError(Exception):
    """Raised when a configuration document cannot be loaded or saved."""
    pass


@dataclass(frozen=True)
class ConfigDocument:
    """A parsed config file: recognized values plus the keys it spelled out."""
    path: Path
    values: dict = field(default_factory=dict)
    present: frozenset = frozenset()
    unknown: frozenset = frozenset()


def user_config_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Path of the user-scope document. It may not exist."""
    environ = os.environ if environ is None else environ
    base = environ.get(CONFIG_DIR_ENV)
    if base:
        return Path(base).expanduser() / USER_CONFIG_FILENAME
    return Path(platformdirs.user_config_dir(APP_NAME)) / USER_CONFIG_FILENAME


def find_project_config(start_path) -> Optional[Path]:
    """Walk upward from start_path and return the first readable .yawn.toml."""
    try:
        directory = Path(start_path).resolve()
    except OSError:
        return None

    while True:
        candidate = directory / PROJECT_CONFIG_NAME
        try:
            if candidate.is_file() and os.access(candidate, os.R_OK):
                return candidate
        except OSError:
            # Untraversable directory: not a readable document
            pass
        parent = directory.parent
        if parent == directory:
            return None
        directory = parent


def parse_document(text: str, path: Path) -> ConfigDocument:
    """Parse TOML text, type-check recognized keys and record which were present."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e

    values = {}
    for key, value in data.items():
        spec = FIELDS_BY_NAME.get(key)
        if spec is None:
            continue
        if not spec.kind.accepts(value):
            raise ConfigError(
                f"Invalid value for '{key}' in {path}: expected {spec.kind.type_name}, "
                f"got {type(value).__name__}"
            )
        values[key] = spec.kind.coerce(value)

    return ConfigDocument(
        path=path,
        values=values,
        present=frozenset(values),
        unknown=frozenset(k for k in data if k not in FIELDS_BY_NAME),
    )


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError as e:
        raise ConfigError(f"Could not access {path}: {e}") from e


def load_document(path: Optional[Path]) -> Optional[ConfigDocument]:
    """Load a document, or None when there is no file at path."""
    if path is None or not _is_file(path):
        return None
    try:
        text = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Could not read {path}: {e}") from e
    return parse_document(text, path)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _toml_string(value: str) -> str:
    # JSON string escapes are a subset of TOML basic-string escapes
    return json.dumps(value, ensure_ascii=False)


def _toml_multiline(value: str) -> str:
    escaped = value.replace('\\', '\\\\').replace('"""', '""\\"')
    return f'"""\n{escaped}"""'


def _toml_value(value: Any, multiline: bool = False) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return repr(value)
    if multiline:
        return _toml_multiline(value)
    return _toml_string(value)


def _header_comment() -> str:
    return "\n".join([
        f"# {APP_NAME} configuration",
        "#",
        "# Settings are resolved in this order (later wins):",
        "#   1. Built-in defaults",
        f"#   2. User config:    {user_config_path()}",
        f"#      (directory can be overridden with ${CONFIG_DIR_ENV})",
        f"#   3. Project config: {PROJECT_CONFIG_NAME} in the working directory or any parent",
        f"#   4. Environment:    {ENV_PREFIX}<SETTING>, e.g. {ENV_PREFIX}AUTO_PUSH=true",
        "#   5. Command-line flags",
        "",
    ])


def generate_config_content(api_key: str = "") -> str:
    """Render a fresh document with every setting at its default."""
    lines = [_header_comment()]
    for spec in FIELDS:
        value = api_key if spec.name == "api_key" else spec.default
        lines.append(f"{spec.name} = {_toml_value(value, spec.multiline)}")
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Saving the API key
# ---------------------------------------------------------------------------

_STRING_DELIMS = ('"""', "'''", '"', "'")
_API_KEY_ASSIGN = re.compile(r'[ \t]*(?:api_key|"api_key"|\'api_key\')[ \t]*=[ \t]*')
_TABLE_HEADER = re.compile(r'[ \t]*\[')


def _string_end(text: str, start: int) -> int:
    """Index just past the TOML string literal that opens at text[start]."""
    delim = next(d for d in _STRING_DELIMS if text.startswith(d, start))
    multiline = len(delim) == 3
    i = start + len(delim)
    while i < len(text):
        if delim[0] == '"' and text[i] == '\\':
            i += 2
            continue
        if text.startswith(delim, i):
            end = i + len(delim)
            # Up to two quotes right before the closing delimiter belong to the string
            while multiline and end < len(text) and text[end] == delim[0] and end - i < 5:
                end += 1
            return end
        if not multiline and text[i] == '\n':
            break
        i += 1
    raise ConfigError(f"Unterminated string at offset {start}")


def _locate_api_key(text: str) -> tuple[Optional[tuple[int, int]], Optional[int]]:
    """Span of the top-level api_key value, or the offset of the first table header.

    Comments, strings and the inside of arrays and inline tables are skipped,
    so neither prompt text nor nested values are mistaken for a key or header.
    """
    i = 0
    depth = 0
    at_line_start = True
    while i < len(text):
        if at_line_start and depth == 0:
            match = _API_KEY_ASSIGN.match(text, i)
            if match:
                start = match.end()
                if not text.startswith(_STRING_DELIMS, start):
                    raise ConfigError("api_key is not a string")
                return (start, _string_end(text, start)), None
            if _TABLE_HEADER.match(text, i):
                return None, i

        at_line_start = False
        ch = text[i]
        if ch == '\n':
            at_line_start = True
            i += 1
        elif ch == '#':
            newline = text.find('\n', i)
            i = len(text) if newline == -1 else newline
        elif ch in '"\'':
            i = _string_end(text, i)
        elif ch in '[{':
            depth += 1
            i += 1
        elif ch in ']}':
            depth -= 1
            i += 1
        else:
            i += 1
    return None, None


def _with_api_key(text: str, api_key: str) -> str:
    span, table_at = _locate_api_key(text)
    new_value = _toml_string(api_key)

    if span is not None:
        start, end = span
        return text[:start] + new_value + text[end:]

    new_line = f"api_key = {new_value}\n"
    if table_at is not None:
        return text[:table_at] + new_line + text[table_at:]
    if text and not text.endswith('\n'):
        text += '\n'
    return text + new_line


def atomic_write(path: Path, content: str, mode: int = 0o600) -> None:
    """Write content to path via a same-directory temp file and os.replace."""
    path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


def persist_api_key(api_key: str, path: Optional[Path] = None) -> Path:
    """Store api_key in the user document, leaving every other byte untouched.

    Creates the document from defaults when it does not exist yet.
    """
    path = path or user_config_path()

    if _is_file(path):
        try:
            current = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Could not read {path}: {e}") from e
        parse_document(current, path)
        updated = _with_api_key(current, api_key)
    else:
        updated = generate_config_content(api_key)

    # Never write a document we could not read back
    parse_document(updated, path)
    atomic_write(path, updated)
    return path
