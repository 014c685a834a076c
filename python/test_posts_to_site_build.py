import os
import shutil

import pytest

from posts_to_site_build import main

TESTDATA = os.path.join(os.path.dirname(__file__), "posts_to_site", "testdata")


@pytest.fixture
def site(tmp_path, monkeypatch):
    monkeypatch.delenv("POSTS_TO_SITE_SOURCE", raising=False)
    monkeypatch.delenv("POSTS_TO_SITE_DESTINATION", raising=False)
    root = tmp_path / "site"
    shutil.copytree(TESTDATA, str(root))
    return root


def test_check_clean(site, capsys):
    assert main(["--source", str(site), "--quiet", "check"]) == 0
    assert "All posts passed." in capsys.readouterr().out


def test_check_reports_errors(site, capsys):
    (site / "_posts" / "2024-12-24-broken.md").write_text(
        "---\ntitle: Broken\ndate: 2024-12-25\n---\n```yaml\nkey: value\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main(["--source", str(site), "--quiet", "check"])
    assert exc.value.code == 1
    out = capsys.readouterr().out
    assert "[fence]" in out
    assert "[filename-date]" in out


def test_build(site):
    assert main(["--source", str(site), "--quiet", "build"]) == 0
    assert (site / "_site" / "index.html").is_file()
    assert (site / "_site" / "2024" / "10" / "20" / "net8-performance-optimisation.html").is_file()


def test_build_custom_destination(site, tmp_path):
    out = tmp_path / "public"
    main(["--source", str(site), "--quiet", "build", "--destination", str(out)])
    assert (out / "assets" / "data" / "posts.json").is_file()


def test_export(site, tmp_path):
    out = tmp_path / "posts.yaml"
    main(["--source", str(site), "--quiet", "export", str(out)])
    assert "json-serializer-vs-json-convert" in out.read_text(encoding="utf-8")


def test_export_bad_extension(site, tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--source", str(site), "--quiet", "export", str(tmp_path / "posts.txt")])
    assert exc.value.code == 1
    assert "Error: Unsupported file extension" in capsys.readouterr().err


def test_pdf(site, tmp_path):
    out = tmp_path / "book.pdf"
    main(["--source", str(site), "--quiet", "pdf", str(out), "--title", "Book"])
    assert out.read_bytes().startswith(b"%PDF-")


def test_missing_posts_directory(tmp_path, capsys, monkeypatch):
    monkeypatch.delenv("POSTS_TO_SITE_SOURCE", raising=False)
    with pytest.raises(SystemExit) as exc:
        main(["--source", str(tmp_path), "--quiet", "check"])
    assert exc.value.code == 1
    assert "posts directory does not exist" in capsys.readouterr().err
