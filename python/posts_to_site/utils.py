"""Shared utilities: logging setup and slug helpers."""

import logging
import re
import unicodedata

LOG_FORMAT = "posts-to-site: %(levelname)s: %(message)s"


def setup_logging(debug=False, quiet=False):
    """Attach a stream handler to the package logger.

    Library modules only ever call ``logging.getLogger(__name__)``; the CLI
    calls this once so the output format is decided in one place.
    """
    logger = logging.getLogger("posts_to_site")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    loghandler = logging.StreamHandler()
    loghandler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(loghandler)
    if debug:
        logger.setLevel(logging.DEBUG)
    elif quiet:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.INFO)
    return logger


def slugify(text, max_length=80):
    """Lower-case, ASCII, dash separated slug for file names and URLs."""
    # Normalize Unicode (e.g. math-styled letters, accents) before sanitizing
    normalized = unicodedata.normalize("NFKD", text)
    normalized = normalized.encode("ascii", "ignore").decode("ascii")
    return re.sub(r'[^a-z0-9]+', '-', normalized.lower()).strip('-')[:max_length]


def humanize_slug(slug):
    """Turn ``net8-performance-optimisation`` into ``Net8 Performance Optimisation``."""
    words = [w for w in re.split(r'[-_\s]+', slug) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)
