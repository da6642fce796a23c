"""Settings for tag page generation, loaded from ``.tagpage.json``."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jsonschema import validate as jsonschema_validate, ValidationError

from tagpage.matching import get_is_wildcard

LOGGER = logging.getLogger(__name__)

CONFIG_FILE = ".tagpage.json"

SETTINGS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "frontmatterQueryProperty": {"type": "string", "minLength": 1},
        "tagPageDir": {"type": "string"},
        "keepUnmarkedContent": {"type": "boolean"},
    },
    "additionalProperties": False,
}

# JSON key -> dataclass field
_FIELDS = {
    "frontmatterQueryProperty": "frontmatter_query_property",
    "tagPageDir": "tag_page_dir",
    "keepUnmarkedContent": "keep_unmarked_content",
}


class SettingsError(ValueError):
    """Raised when a settings file cannot be read or fails validation."""


@dataclass
class TagPageSettings:
    frontmatter_query_property: str = "tag-page-query"
    tag_page_dir: str = "Tags"
    # Keep text of a page without sentinels as `before` instead of dropping it.
    keep_unmarked_content: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TagPageSettings":
        try:
            jsonschema_validate(instance=data, schema=SETTINGS_SCHEMA)
        except ValidationError as exc:
            raise SettingsError(f"Invalid settings: {exc.message}") from exc
        return cls(**{_FIELDS[key]: value for key, value in data.items()})

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for key, attr in _FIELDS.items()}


def load_settings(
    vault_root: Union[str, Path, None] = None,
    config_path: Union[str, Path, None] = None,
) -> TagPageSettings:
    """Load settings from `config_path`, or from ``.tagpage.json`` in the vault.

    A missing default file gives default settings; a missing explicit file
    is an error.

    Raises:
        SettingsError: If the file is unreadable, not JSON, or fails validation.
    """
    explicit = config_path is not None
    path: Optional[Path]
    if explicit:
        path = Path(config_path)
    elif vault_root is not None:
        path = Path(vault_root) / CONFIG_FILE
    else:
        path = None

    if path is None or (not explicit and not path.exists()):
        return TagPageSettings()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise SettingsError(f"Cannot read settings from {path}: {exc}") from exc

    LOGGER.debug(f"Loaded settings from {path}")
    return TagPageSettings.from_dict(data)


def default_page_path(settings: TagPageSettings, tag_of_interest: str) -> Path:
    """Page location for a tag: ``<tag_page_dir>/<tag>_Tags.md``."""
    cleaned = get_is_wildcard(tag_of_interest).cleaned_tag.lstrip("#")
    return Path(settings.tag_page_dir) / f"{cleaned.replace('/', '_')}_Tags.md"
