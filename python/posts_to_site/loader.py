"""Read post files from disk into Post objects."""

import logging
import os
import re
from datetime import date

from .codeblocks import find_code_blocks
from .frontmatter import normalize_terms, parse_date, parse_front_matter, split_front_matter
from .models import DEFAULT_LAYOUT, Post, PostError
from .utils import humanize_slug

logger = logging.getLogger(__name__)

POST_EXTENSIONS = (".md", ".markdown")

_FILENAME_RE = re.compile(r'^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})-(?P<slug>.+)$')
_HEADING_RE = re.compile(r'^#(?!#)[ \t]+(?P<title>.+?)(?:[ \t]+#+)?[ \t]*$')


def parse_filename(filename):
    """Split ``YYYY-MM-DD-slug.md`` into ``(date, slug)``.

    Files without a date prefix give ``(None, stem)``. A prefix that is not
    a real calendar day raises PostError.
    """
    stem = os.path.splitext(os.path.basename(filename))[0]
    m = _FILENAME_RE.match(stem)
    if not m:
        return None, stem
    try:
        file_date = date(int(m.group("year")), int(m.group("month")), int(m.group("day")))
    except ValueError as e:
        raise PostError(f"file name date is not a calendar date: {e}", path=filename) from e
    return file_date, m.group("slug")


def leading_heading(body):
    """Text of the level-1 ATX heading on the first non-blank line, if any."""
    for line in body.splitlines():
        if not line.strip():
            continue
        m = _HEADING_RE.match(line.strip())
        return m.group("title").strip() if m else None
    return None


def parse_post(text, filename, default_layout=DEFAULT_LAYOUT):
    """Build a Post from the file's text. ``filename`` supplies slug and date."""
    file_date, slug = parse_filename(filename)

    try:
        raw, body, body_line = split_front_matter(text)
        metadata = parse_front_matter(raw) if raw is not None else {}
    except PostError as e:
        e.path = filename
        raise

    title = metadata.get("title")
    if title is None or not str(title).strip():
        title = leading_heading(body) or humanize_slug(slug) or "Untitled"
    title = str(title).strip()

    if metadata.get("date") is not None:
        try:
            post_date = parse_date(metadata["date"])
        except PostError as e:
            e.path = filename
            raise
    elif file_date is not None:
        post_date = file_date
    else:
        raise PostError("no date in front-matter or file name", path=filename)

    try:
        code_blocks = find_code_blocks(body)
    except PostError as e:
        e.path = filename
        e.line = e.line + body_line - 1 if e.line is not None else None
        raise

    post = Post(
        title=title,
        date=post_date,
        body=body,
        layout=str(metadata.get("layout") or default_layout),
        tags=normalize_terms(metadata.get("tags")),
        categories=normalize_terms(metadata.get("categories", metadata.get("category"))),
        slug=slug,
        path=filename,
        has_front_matter=raw is not None,
        metadata=metadata,
        code_blocks=code_blocks,
    )
    logger.debug("Parsed %s: title=%r date=%s tags=%s blocks=%d",
                 filename, post.title, post.date, post.tags, len(code_blocks))
    return post


def load_post(path, default_layout=DEFAULT_LAYOUT):
    """Read one post file (UTF-8)."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise PostError(f"not valid UTF-8: {e}", path=path) from e
    return parse_post(text, path, default_layout=default_layout)


def post_files(directory):
    """Post files directly inside ``directory``, sorted by name."""
    names = []
    for name in sorted(os.listdir(directory)):
        if name.startswith(("_", ".")):
            continue
        if os.path.splitext(name)[1].lower() not in POST_EXTENSIONS:
            continue
        path = os.path.join(directory, name)
        if os.path.isfile(path):
            names.append(path)
    return names


def load_posts(directory, default_layout=DEFAULT_LAYOUT, strict=True):
    """Load every post in ``directory`` sorted by (date, slug).

    With ``strict`` the first failing file raises. Otherwise failures are
    logged and skipped, and ``(posts, failures)`` is returned where
    ``failures`` is a list of PostError.
    """
    if not os.path.isdir(directory):
        raise PostError("posts directory does not exist", path=directory)

    posts = []
    failures = []
    for path in post_files(directory):
        try:
            posts.append(load_post(path, default_layout=default_layout))
        except PostError as e:
            if strict:
                raise
            logger.warning("Skipping %s", e)
            failures.append(e)

    posts.sort(key=lambda p: (p.date, p.slug))
    logger.info("Loaded %d posts from %s", len(posts), directory)
    if strict:
        return posts
    return posts, failures
