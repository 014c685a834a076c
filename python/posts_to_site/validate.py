"""Content-integrity checks for post files.

Every check reports Issue objects instead of raising, so one pass over a
directory lists every problem at once:

- front-matter, when present, is a closed, well-formed mapping with a
  valid ``date``
- every fenced code block is closed and survives extract + reinsert
- the file name date is a calendar date and matches the front-matter date
- the body is not empty once the front-matter is stripped
- unknown front-matter keys (warning) and, optionally, broken links
"""

import logging
import os
import re

from .codeblocks import extract_code_blocks, reinsert_code_blocks
from .frontmatter import parse_date, parse_front_matter, split_front_matter
from .loader import parse_filename, post_files
from .models import ERROR, RECOGNIZED_KEYS, TOLERATED_KEYS, WARNING, Issue, PostError

logger = logging.getLogger(__name__)


def _line_of(text, needle, first_line=1):
    idx = text.find(needle)
    if idx == -1:
        return None
    return text.count("\n", 0, idx) + first_line


def _key_line(text, key):
    """Line of the top-level front-matter ``key``, not any line containing it."""
    m = re.search(rf"^{re.escape(key)}[ \t]*:", text, re.M)
    if m is None:
        return None
    return text.count("\n", 0, m.start()) + 1


def check_text(text, path, link_checker=None):
    """All issues for one post's text. ``path`` supplies the file name date."""
    issues = []

    def report(code, message, severity=ERROR, line=None):
        issues.append(Issue(path=path, code=code, message=message, severity=severity, line=line))

    try:
        file_date, _ = parse_filename(path)
    except PostError as e:
        report("filename-date", e.message)
        file_date = None

    try:
        raw, body, body_line = split_front_matter(text)
    except PostError as e:
        report("front-matter", e.message, line=e.line)
        return issues

    fm_date = None
    if raw is not None:
        try:
            metadata = parse_front_matter(raw)
        except PostError as e:
            report("front-matter", e.message, line=e.line)
            metadata = None

        if metadata is not None:
            if metadata.get("date") is None:
                report("date", "front-matter has no 'date'", line=1)
            else:
                try:
                    fm_date = parse_date(metadata["date"])
                except PostError as e:
                    report("date", e.message, line=_key_line(text, "date"))

            for key in metadata:
                if key not in RECOGNIZED_KEYS and key not in TOLERATED_KEYS:
                    report("unknown-key", f"unrecognized front-matter key '{key}'",
                           severity=WARNING, line=_key_line(text, str(key)))
    elif file_date is None:
        report("date", "no front-matter and no date in the file name")

    if fm_date is not None and file_date is not None and fm_date != file_date:
        report("filename-date",
               f"file name date {file_date.isoformat()} does not match "
               f"front-matter date {fm_date.isoformat()}")

    fences_ok = True
    try:
        skeleton, pairs = extract_code_blocks(body)
    except PostError as e:
        fences_ok = False
        report("fence", e.message, line=e.line + body_line - 1)
    else:
        if reinsert_code_blocks(skeleton, pairs) != body:
            fences_ok = False
            report("fence", "code blocks do not survive extract and reinsert")

    if not body.strip():
        report("empty-body", "post body is empty")

    if link_checker is not None and fences_ok:
        for url, detail in link_checker.check_body(body):
            report("broken-link", f"{url}: {detail}", severity=WARNING,
                   line=_line_of(body, url, body_line))

    for issue in issues:
        logger.debug("%s", issue)
    return issues


def check_post(path, link_checker=None):
    """Issues for one post file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        return [Issue(path=path, code="encoding", message=f"not valid UTF-8: {e}")]
    return check_text(text, path, link_checker=link_checker)


def check_posts(directory, link_checker=None):
    """Issues for every post in ``directory``."""
    if not os.path.isdir(directory):
        raise PostError("posts directory does not exist", path=directory)
    issues = []
    paths = post_files(directory)
    for path in paths:
        issues.extend(check_post(path, link_checker=link_checker))
    logger.info("Checked %d posts: %d errors, %d warnings", len(paths),
                sum(1 for i in issues if i.severity == ERROR),
                sum(1 for i in issues if i.severity == WARNING))
    return issues


def has_errors(issues):
    return any(issue.severity == ERROR for issue in issues)
