"""
Configuration Package

Settings are merged from five tiers, each overriding the one before it
field by field:

1. Built-in defaults
2. User document (~/.config/yawn/config.toml on Linux)
3. Project document (.yawn.toml, nearest parent wins)
4. Environment variables (YAWN_<SETTING>)
5. Command-line flags that were explicitly given

For every field the resolver records which tier supplied the final value.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from yawn.config.fields import (
    Config,
    Field,
    FieldKind,
    FIELDS,
    FIELDS_BY_NAME,
    Source,
    DIFF_PLACEHOLDER,
    DEFAULT_PROMPT,
    ENV_PREFIX,
)
from yawn.config.files import (
    ConfigDocument,
    ConfigError,
    CONFIG_DIR_ENV,
    PROJECT_CONFIG_NAME,
    find_project_config,
    generate_config_content,
    load_document,
    persist_api_key,
    user_config_path,
)
from yawn.config.files import user_config_path as _default_user_config_path
from yawn.output import debug

MASKED_SECRET = "********"

Provenance = dict[str, Source]


@dataclass(frozen=True)
class ResolvedConfig:
    """Final settings plus the tier each one came from."""
    config: Config
    provenance: Mapping[str, Source]
    user_path: Optional[Path] = None
    project_path: Optional[Path] = None

    def source_of(self, name: str) -> Source:
        return self.provenance[name]


class ConfigResolver:
    """Merges defaults, files, environment and flags into one Config.

    The path lookups and the environment are injected so tests can supply
    their own without touching the real home directory.
    """

    def __init__(
        self,
        user_config_path: Optional[Callable[[], Optional[Path]]] = None,
        project_config_finder: Callable[[Any], Optional[Path]] = find_project_config,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self._user_config_path = user_config_path or (lambda: _default_user_config_path(environ))
        self._find_project_config = project_config_finder
        self._environ = environ

    def resolve(self, project_path=None, flag_overrides: Optional[Mapping[str, Any]] = None) -> ResolvedConfig:
        values = {spec.name: spec.default for spec in FIELDS}
        provenance: Provenance = {spec.name: Source.DEFAULT for spec in FIELDS}

        user_path = self._locate_user_document()
        user_doc = load_document(user_path)
        if user_doc is not None:
            self._apply_document(user_doc, Source.USER, values, provenance)

        project_doc = None
        if project_path:
            project_doc = load_document(self._find_project_config(project_path))
            if project_doc is not None:
                self._apply_document(project_doc, Source.PROJECT, values, provenance)

        self._apply_environment(values, provenance)
        self._apply_flags(flag_overrides or {}, values, provenance)

        return ResolvedConfig(
            config=Config(**values),
            provenance=dict(provenance),
            user_path=user_doc.path if user_doc else None,
            project_path=project_doc.path if project_doc else None,
        )

    def _locate_user_document(self) -> Optional[Path]:
        try:
            return self._user_config_path()
        except (OSError, RuntimeError, KeyError):
            # No home directory or similar: behave as if there is no document
            return None

    def _apply_document(self, doc: ConfigDocument, source: Source, values: dict, provenance: Provenance) -> None:
        for key in doc.present:
            values[key] = doc.values[key]
            provenance[key] = source
        if doc.unknown:
            verbose = bool(values.get("verbose"))
            debug("CONFIG", f"Ignoring unknown keys in {doc.path}: {', '.join(sorted(doc.unknown))}", verbose)

    def _apply_environment(self, values: dict, provenance: Provenance) -> None:
        environ = os.environ if self._environ is None else self._environ
        for spec in FIELDS:
            raw = environ.get(spec.env_var)
            if not raw:
                continue
            parsed = spec.parse_env(raw)
            if parsed is None:
                continue
            values[spec.name] = parsed
            provenance[spec.name] = Source.ENV

    def _apply_flags(self, overrides: Mapping[str, Any], values: dict, provenance: Provenance) -> None:
        for name, value in overrides.items():
            if name not in FIELDS_BY_NAME:
                raise ConfigError(f"Unknown setting for command-line override: {name}")
            if name == "api_key" and not value:
                continue
            values[name] = value
            provenance[name] = Source.FLAG


def resolve_config(project_path=None, flag_overrides: Optional[Mapping[str, Any]] = None) -> ResolvedConfig:
    """Resolve configuration with the real user path, project search and environment."""
    return ConfigResolver().resolve(project_path, flag_overrides)


def _display_value(spec: Field, value: Any) -> str:
    if spec.secret:
        return MASKED_SECRET if value else "(not set)"
    if spec.multiline:
        return f"<{len(value)} chars>"
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def format_config_report(resolved: ResolvedConfig) -> list[str]:
    """One 'name = value (source)' line per field, secrets masked."""
    width = max(len(spec.name) for spec in FIELDS)
    lines = []
    for spec in FIELDS:
        value = _display_value(spec, getattr(resolved.config, spec.name))
        lines.append(f"{spec.name.ljust(width)} = {value} ({resolved.provenance[spec.name]})")
    return lines


__all__ = [
    "Config",
    "ConfigDocument",
    "ConfigError",
    "ConfigResolver",
    "ResolvedConfig",
    "Field",
    "FieldKind",
    "FIELDS",
    "Source",
    "DIFF_PLACEHOLDER",
    "DEFAULT_PROMPT",
    "ENV_PREFIX",
    "CONFIG_DIR_ENV",
    "PROJECT_CONFIG_NAME",
    "MASKED_SECRET",
    "find_project_config",
    "format_config_report",
    "generate_config_content",
    "load_document",
    "persist_api_key",
    "resolve_config",
    "user_config_path",
]
