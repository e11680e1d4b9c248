from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from linktitle.paste.settings import (
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_TEMPLATE,
    LINK_REGEX,
    LinkTitleSettings,
)

GLOBAL_CONFIG = Path(os.getenv("LINKTITLE_CONFIG") or Path.home() / ".linktitle_config.json")


def init_settings() -> None:
    GLOBAL_CONFIG.parent.mkdir(parents=True, exist_ok=True)


def _read_global_config() -> dict:
    """Return the parsed global config, or an empty dict on error/missing."""
    if not GLOBAL_CONFIG.exists():
        return {}
    try:
        payload = json.loads(GLOBAL_CONFIG.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _update_global_config(updates: dict) -> None:
    """Merge updates into global config file."""
    existing = _read_global_config()
    existing.update(updates)
    init_settings()
    GLOBAL_CONFIG.write_text(json.dumps(existing, indent=2), encoding="utf-8")


def _load_bool(payload: dict, key: str, default: bool) -> bool:
    value = payload.get(key)
    return value if isinstance(value, bool) else default


def _load_str(payload: dict, key: str, default: str) -> str:
    value = payload.get(key)
    return value if isinstance(value, str) else default


def _template_from(payload: dict) -> str:
    template = _load_str(payload, "arxiv_template", DEFAULT_TEMPLATE)
    return template if template.strip() else DEFAULT_TEMPLATE


def _timeout_from(payload: dict, default: float = DEFAULT_FETCH_TIMEOUT) -> float:
    try:
        timeout = float(payload.get("fetch_timeout", default))
    except (TypeError, ValueError):
        return default
    return timeout if timeout > 0 else default


def load_enhance_default_paste() -> bool:
    return _load_bool(_read_global_config(), "enhance_default_paste", True)


def save_enhance_default_paste(enabled: bool) -> None:
    _update_global_config({"enhance_default_paste": bool(enabled)})


def load_should_replace_selection() -> bool:
    return _load_bool(_read_global_config(), "should_replace_selection", True)


def save_should_replace_selection(enabled: bool) -> None:
    _update_global_config({"should_replace_selection": bool(enabled)})


def load_website_blacklist() -> str:
    """Comma or newline separated substrings; URLs containing one are not fetched."""
    return _load_str(_read_global_config(), "website_blacklist", "")


def save_website_blacklist(blacklist: str) -> None:
    _update_global_config({"website_blacklist": blacklist})


def load_arxiv_template() -> str:
    return _template_from(_read_global_config())


def save_arxiv_template(template: str) -> None:
    _update_global_config({"arxiv_template": template})


def load_link_regex() -> str:
    return _load_str(_read_global_config(), "link_regex", LINK_REGEX) or LINK_REGEX


def save_link_regex(regex: Optional[str]) -> None:
    _update_global_config({"link_regex": regex})


def load_fetch_timeout(default: float = DEFAULT_FETCH_TIMEOUT) -> float:
    return _timeout_from(_read_global_config(), default)


def save_fetch_timeout(seconds: float) -> None:
    _update_global_config({"fetch_timeout": float(seconds)})


def load_link_title_settings() -> LinkTitleSettings:
    """Read a fresh settings snapshot from disk."""
    payload = _read_global_config()
    return LinkTitleSettings(
        enhance_default_paste=_load_bool(payload, "enhance_default_paste", True),
        should_replace_selection=_load_bool(payload, "should_replace_selection", True),
        website_blacklist=_load_str(payload, "website_blacklist", ""),
        template=_template_from(payload),
        link_regex=_load_str(payload, "link_regex", LINK_REGEX) or LINK_REGEX,
        fetch_timeout=_timeout_from(payload),
    )


def save_link_title_settings(settings: LinkTitleSettings) -> None:
    _update_global_config(
        {
            "enhance_default_paste": settings.enhance_default_paste,
            "should_replace_selection": settings.should_replace_selection,
            "website_blacklist": settings.website_blacklist,
            "arxiv_template": settings.template,
            "link_regex": settings.link_regex,
            "fetch_timeout": settings.fetch_timeout,
        }
    )
