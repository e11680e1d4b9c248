"""Tests for settings persistence."""
from __future__ import annotations

import json

import pytest

from linktitle.app import config
from linktitle.paste.settings import DEFAULT_TEMPLATE, LINK_REGEX, LinkTitleSettings


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    path = tmp_path / "settings" / "linktitle.json"
    monkeypatch.setattr(config, "GLOBAL_CONFIG", path)
    return path


def test_defaults_without_config_file():
    assert config.load_link_title_settings() == LinkTitleSettings()


def test_save_and_load_round_trip(isolated_config):
    settings = LinkTitleSettings(
        enhance_default_paste=False,
        should_replace_selection=False,
        website_blacklist="example.com\nfoo",
        template="{{TITLE}} - {{AUTHOR}}",
        fetch_timeout=3.5,
    )
    config.save_link_title_settings(settings)
    assert isolated_config.exists()
    assert config.load_link_title_settings() == settings


def test_individual_setters_merge_into_file(isolated_config):
    config.save_website_blacklist("a, b")
    config.save_enhance_default_paste(False)
    payload = json.loads(isolated_config.read_text(encoding="utf-8"))
    assert payload == {"website_blacklist": "a, b", "enhance_default_paste": False}
    assert config.load_website_blacklist() == "a, b"
    assert config.load_enhance_default_paste() is False
    assert config.load_should_replace_selection() is True


def test_malformed_file_loads_defaults(isolated_config):
    isolated_config.parent.mkdir(parents=True)
    isolated_config.write_text("{not json", encoding="utf-8")
    assert config.load_link_title_settings() == LinkTitleSettings()


def test_wrong_types_fall_back_per_key(isolated_config):
    isolated_config.parent.mkdir(parents=True)
    isolated_config.write_text(
        json.dumps(
            {
                "enhance_default_paste": "yes",
                "website_blacklist": ["example.com"],
                "arxiv_template": "   ",
                "link_regex": "",
                "fetch_timeout": -1,
                "should_replace_selection": False,
            }
        ),
        encoding="utf-8",
    )
    settings = config.load_link_title_settings()
    assert settings.enhance_default_paste is True
    assert settings.website_blacklist == ""
    assert settings.template == DEFAULT_TEMPLATE
    assert settings.link_regex == LINK_REGEX
    assert settings.fetch_timeout == 10.0
    assert settings.should_replace_selection is False


def test_fetch_timeout_and_template_setters():
    config.save_fetch_timeout(2)
    config.save_arxiv_template("[{{TITLE}}]({{URL}}) {{ARXIVID}}")
    assert config.load_fetch_timeout() == 2.0
    assert config.load_arxiv_template() == "[{{TITLE}}]({{URL}}) {{ARXIVID}}"
    config.save_link_regex(None)
    assert config.load_link_regex() == LINK_REGEX
