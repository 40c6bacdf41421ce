from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .models import DEFAULT_PATTERN, MergeOptions, TemplateOptions

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class MergeConfig:
    add_page_break_before: bool = True


@dataclass(frozen=True)
class TemplateConfig:
    pattern: str = DEFAULT_PATTERN
    # If true, placeholders without data are deleted instead of kept verbatim.
    remove_missing: bool = False


@dataclass(frozen=True)
class AppConfig:
    merge: MergeConfig = MergeConfig()
    template: TemplateConfig = TemplateConfig()
    log_path: str | None = None
    log_level: str = "info"  # 'debug' | 'info' | 'warning' | 'error'

    @property
    def log_level_value(self) -> int:
        return _LOG_LEVELS[self.log_level]

    def merge_options(self, pages: Sequence[int] | None = None) -> MergeOptions:
        return MergeOptions(pages=pages, add_page_break_before=self.merge.add_page_break_before)

    def template_options(self) -> TemplateOptions:
        return TemplateOptions(pattern=self.template.pattern, remove_missing=self.template.remove_missing)


def _resolve_optional_path(base_dir: Path, value: Any) -> str | None:
    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None
    path = Path(raw)
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)


def _normalize_choice(value: Any, *, field_name: str, allowed: set[str], default: str) -> str:
    raw = str(default if value is None else value).strip().lower()
    if raw not in allowed:
        allowed_list = ", ".join(sorted(allowed))
        raise ValueError(f"Invalid value for {field_name}: {raw!r}. Allowed: {allowed_list}")
    return raw


def _validate_pattern(value: Any) -> str:
    pattern = str(value)
    try:
        groups = re.compile(pattern).groups
    except re.error as e:
        raise ValueError(f"Invalid value for template.pattern: {pattern!r} ({e})") from e
    if groups != 1:
        raise ValueError(f"Invalid value for template.pattern: {pattern!r} must have exactly one capture group")
    return pattern


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section {name!r} must be a mapping, got {type(value).__name__}")
    return value


def load_config(path: str | Path) -> AppConfig:
    cfg_path = Path(path)
    data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a mapping at the top level, got {type(data).__name__}: {cfg_path}")

    merge_data = _section(data, "merge")
    template_data = _section(data, "template")

    merge = MergeConfig(
        add_page_break_before=bool(merge_data.get("add_page_break_before", True)),
    )
    template = TemplateConfig(
        pattern=_validate_pattern(template_data.get("pattern", DEFAULT_PATTERN)),
        remove_missing=bool(template_data.get("remove_missing", False)),
    )

    return AppConfig(
        merge=merge,
        template=template,
        log_path=_resolve_optional_path(cfg_path.parent, data.get("log_path")),
        log_level=_normalize_choice(
            data.get("log_level", "info"),
            field_name="log_level",
            allowed=set(_LOG_LEVELS),
            default="info",
        ),
    )
