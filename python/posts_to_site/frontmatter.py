"""Split and parse the YAML front-matter block at the top of a post."""

import re
from datetime import date, datetime

import yaml

from .models import FrontMatterError

DELIMITER = "---"
CLOSING_DELIMITERS = ("---", "...")


class FrontMatterLoader(yaml.SafeLoader):
    """SafeLoader that leaves dates as strings; parse_date decides if they are valid."""


FrontMatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

_DATE_RE = re.compile(
    r'^(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})'
    r'(?:[Tt ]+(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2})(?:\.\d+)?)?)?'
    r'\s*(?:Z|[+-]\d{2}:?\d{2})?$'
)


def split_front_matter(text):
    """Split a post into (raw front-matter, body, first body line).

    The block only counts when the very first line is ``---``. Returns
    ``(None, text, 1)`` for a post without one.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != DELIMITER:
        return None, text, 1

    for i in range(1, len(lines)):
        if lines[i].rstrip() in CLOSING_DELIMITERS:
            raw = "".join(lines[1:i])
            body = "".join(lines[i + 1:])
            return raw, body, i + 2

    raise FrontMatterError("front-matter opened with '---' but never closed", line=1)


def parse_front_matter(raw):
    """Parse the raw block into a mapping. An empty block is ``{}``."""
    try:
        data = yaml.load(raw, Loader=FrontMatterLoader)
    except (yaml.YAMLError, ValueError) as e:
        line = None
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            # +1 for 1-based lines, +1 for the opening delimiter
            line = mark.line + 2
        problem = getattr(e, "problem", None) or str(e)
        raise FrontMatterError(f"invalid YAML in front-matter: {problem}", line=line) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"front-matter must be a mapping of keys to values, got {type(data).__name__}",
            line=2,
        )
    return {str(k): v for k, v in data.items()}


def normalize_terms(value):
    """Normalize a ``tags``/``categories`` value to an ordered list of unique strings.

    Accepts a space or comma separated string, a list, or nothing.
    """
    if value is None:
        return []
    if isinstance(value, str):
        tokens = re.split(r'[,\s]+', value)
    elif isinstance(value, (list, tuple, set)):
        tokens = [str(v).strip() for v in value if v is not None]
    else:
        tokens = [str(value)]

    terms = []
    for token in tokens:
        token = token.strip()
        if token and token not in terms:
            terms.append(token)
    return terms


def parse_date(value):
    """Return the calendar date named by a front-matter ``date`` value.

    Offsets are accepted but ignored: the day is the one written in the post.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise FrontMatterError(f"invalid date {value!r}")

    m = _DATE_RE.match(value.strip())
    if not m:
        raise FrontMatterError(f"invalid date {value!r}")
    try:
        parsed = date(int(m.group("year")), int(m.group("month")), int(m.group("day")))
        if m.group("hour") is not None:
            hour, minute = int(m.group("hour")), int(m.group("minute"))
            second = int(m.group("second") or 0)
            if hour > 23 or minute > 59 or second > 59:
                raise ValueError("time out of range")
    except ValueError as e:
        raise FrontMatterError(f"invalid date {value!r}: {e}") from e
    return parsed
