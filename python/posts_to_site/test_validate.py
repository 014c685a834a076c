import os

import pytest

from posts_to_site.models import ERROR, WARNING, PostError
from posts_to_site.validate import check_post, check_posts, check_text, has_errors

POSTS = os.path.join(os.path.dirname(__file__), "testdata", "_posts")


def codes(issues):
    return sorted(issue.code for issue in issues)


def test_sample_posts_are_clean():
    issues = check_posts(POSTS)
    assert issues == []
    assert not has_errors(issues)


def test_missing_closing_delimiter():
    issues = check_text("---\ntitle: x\ndate: 2024-01-01\nbody\n", "2024-01-01-x.md")
    assert codes(issues) == ["front-matter"]
    assert issues[0].line == 1


def test_malformed_yaml():
    issues = check_text("---\ntitle: [x\n---\nbody\n", "2024-01-01-x.md")
    assert codes(issues) == ["front-matter"]
    assert has_errors(issues)


def test_front_matter_without_date():
    issues = check_text("---\ntitle: x\n---\nbody\n", "2024-01-01-x.md")
    assert codes(issues) == ["date"]


def test_invalid_date():
    issues = check_text("---\ntitle: x\ndate: 2024-13-01\n---\nbody\n", "2024-01-01-x.md")
    assert codes(issues) == ["date"]
    assert issues[0].line == 3


def test_no_front_matter_needs_file_name_date():
    assert check_text("# Title\n\ntext\n", "2024-10-20-x.md") == []
    assert codes(check_text("# Title\n\ntext\n", "about.md")) == ["date"]


def test_file_name_date_mismatch():
    issues = check_text("---\ndate: 2024-12-03\n---\nbody\n", "2024-12-02-x.md")
    assert codes(issues) == ["filename-date"]
    assert "2024-12-02" in issues[0].message


def test_file_name_date_not_a_calendar_date():
    issues = check_text("---\ndate: 2024-02-28\n---\nbody\n", "2024-02-30-x.md")
    assert codes(issues) == ["filename-date"]


def test_file_name_date_matches_datetime_with_offset():
    assert check_text("---\ndate: 2024-12-02 23:30:00 -0800\n---\nbody\n", "2024-12-02-x.md") == []


def test_unclosed_fence():
    text = "---\ndate: 2024-01-01\n---\nintro\n\n```csharp\nvar x = 1;\n"
    issues = check_text(text, "2024-01-01-x.md")
    assert codes(issues) == ["fence"]
    assert issues[0].line == 6


def test_empty_body():
    issues = check_text("---\ndate: 2024-01-01\n---\n\n   \n", "2024-01-01-x.md")
    assert codes(issues) == ["empty-body"]


def test_unknown_key_is_a_warning():
    issues = check_text("---\ndate: 2024-01-01\nauthor: me\nseries: perf\n---\nbody\n", "2024-01-01-x.md")
    assert codes(issues) == ["unknown-key"]
    assert issues[0].severity == WARNING
    assert issues[0].line == 4
    assert not has_errors(issues)


def test_several_problems_reported_together():
    text = "---\ndate: 2024-01-02\n---\n```bash\necho\n"
    issues = check_text(text, "2024-01-01-x.md")
    assert codes(issues) == ["fence", "filename-date"]
    assert all(issue.severity == ERROR for issue in issues)


class FakeChecker:
    def __init__(self, broken):
        self.broken = broken

    def check_body(self, body):
        return [(url, "HTTP 404 Not Found") for url in self.broken if url in body]


def test_broken_links_are_warnings():
    text = "---\ndate: 2024-01-01\n---\nintro\n\nSee [docs](https://example.com/gone).\n"
    issues = check_text(text, "2024-01-01-x.md", link_checker=FakeChecker(["https://example.com/gone"]))
    assert codes(issues) == ["broken-link"]
    assert issues[0].severity == WARNING
    assert issues[0].line == 6


def test_check_post_reads_file(tmp_path):
    path = tmp_path / "2024-01-01-x.md"
    path.write_text("---\ndate: 2024-01-01\n---\n", encoding="utf-8")
    issues = check_post(str(path))
    assert codes(issues) == ["empty-body"]
    assert str(issues[0]).startswith(str(path))


def test_check_post_not_utf8(tmp_path):
    path = tmp_path / "2024-01-01-x.md"
    path.write_bytes(b"\xff\xfe\x00bad")
    assert codes(check_post(str(path))) == ["encoding"]


def test_check_posts_missing_directory(tmp_path):
    with pytest.raises(PostError):
        check_posts(str(tmp_path / "missing"))


def test_bad_date_line_skips_similar_keys():
    text = "---\ntitle: x\nupdated: 2024-01-01\ndate: 2024-13-01\n---\nbody\n"
    issues = check_text(text, "2024-01-01-x.md")
    assert codes(issues) == ["date", "unknown-key"]
    date_issue = [i for i in issues if i.code == "date"][0]
    assert date_issue.line == 4


def test_unknown_key_line_is_the_key_itself():
    text = "---\ntitle: x\ndate: 2024-01-01\nmax: 1\nx: 2\n---\nbody\n"
    issues = check_text(text, "2024-01-01-x.md")
    lines = {i.message: i.line for i in issues if i.code == "unknown-key"}
    assert lines == {"unrecognized front-matter key 'max'": 4,
                     "unrecognized front-matter key 'x'": 5}
