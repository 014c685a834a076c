import os

import pytest

from posts_to_site.config import ConfigError, SiteConfig, load_config

TESTDATA = os.path.join(os.path.dirname(__file__), "testdata")


def test_load_sample_config(monkeypatch):
    monkeypatch.delenv("POSTS_TO_SITE_SOURCE", raising=False)
    monkeypatch.delenv("POSTS_TO_SITE_DESTINATION", raising=False)
    config = load_config(source=TESTDATA)
    assert config.title == "Notes on .NET"
    assert config.url == "https://blog.example.com"
    assert config.default_layout == "post"
    assert config.posts_path == os.path.join(TESTDATA, "_posts")
    assert config.destination_path == os.path.join(TESTDATA, "_site")


def test_missing_config_gives_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("POSTS_TO_SITE_DESTINATION", raising=False)
    config = load_config(source=str(tmp_path))
    assert config == SiteConfig(source=str(tmp_path))


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("POSTS_TO_SITE_SOURCE", str(tmp_path))
    monkeypatch.setenv("POSTS_TO_SITE_DESTINATION", "/srv/www")
    (tmp_path / "_config.yml").write_text("destination: public\nposts_dir: articles\n", encoding="utf-8")
    config = load_config()
    assert config.source == str(tmp_path)
    assert config.destination_path == "/srv/www"
    assert config.posts_path == os.path.join(str(tmp_path), "articles")


def test_explicit_path_and_layout_default(tmp_path, monkeypatch):
    monkeypatch.delenv("POSTS_TO_SITE_DESTINATION", raising=False)
    path = tmp_path / "site.yml"
    path.write_text("title: T\ndefaults:\n  - values:\n      layout: page\n", encoding="utf-8")
    config = load_config(str(path), source=str(tmp_path))
    assert config.title == "T"
    assert config.default_layout == "page"


@pytest.mark.parametrize("text", ["title: [unclosed\n", "- a\n- b\n", "title: 42\n"])
def test_invalid_config(tmp_path, text):
    (tmp_path / "_config.yml").write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(source=str(tmp_path))
