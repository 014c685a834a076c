"""Data models, errors and constants for posts-to-site generation."""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from reportlab.lib.pagesizes import letter, A4, legal, A3, A5, TABLOID

PAPER_SIZES = {
    "letter": letter,
    "a4": A4,
    "legal": legal,
    "a3": A3,
    "a5": A5,
    "tabloid": TABLOID,
}

# Front-matter keys every renderer understands.
RECOGNIZED_KEYS = ("layout", "title", "tags", "categories", "date")

# Keys that are common in Jekyll posts and not worth a warning.
TOLERATED_KEYS = ("author", "excerpt", "permalink", "published", "description")

DEFAULT_LAYOUT = "post"

ERROR = "error"
WARNING = "warning"


class PostError(Exception):
    """Raised when a post file cannot be turned into a Post."""

    def __init__(self, message, path=None, line=None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.line = line

    def __str__(self):
        where = self.path or ""
        if self.line is not None:
            where = f"{where}:{self.line}" if where else f"line {self.line}"
        return f"{where}: {self.message}" if where else self.message


class FrontMatterError(PostError):
    """Malformed front-matter block: missing delimiter, bad YAML or bad date."""


class UnclosedFenceError(PostError):
    """A fenced code block was opened but never closed."""


@dataclass(frozen=True)
class CodeBlock:
    """A fenced code block found in a post body."""
    language: str
    code: str
    fence: str
    start: int
    end: int
    line: int
    # exact source text, fences included
    raw: str = ""


@dataclass(frozen=True)
class Post:
    """A single Markdown post, as read from disk."""
    title: str
    date: date
    body: str
    layout: str = DEFAULT_LAYOUT
    tags: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    slug: str = ""
    path: Optional[str] = None
    has_front_matter: bool = True
    # raw front-matter mapping, unrecognised keys included
    metadata: dict = field(default_factory=dict)
    code_blocks: List[CodeBlock] = field(default_factory=list)

    @property
    def languages(self):
        """Language hints used by the post's code blocks, in order of first use."""
        seen = []
        for block in self.code_blocks:
            if block.language and block.language not in seen:
                seen.append(block.language)
        return seen


@dataclass(frozen=True)
class Issue:
    """One content-integrity finding for a post file."""
    path: str
    code: str
    message: str
    severity: str = ERROR
    line: Optional[int] = None

    def __str__(self):
        where = self.path if self.line is None else f"{self.path}:{self.line}"
        return f"{where}: {self.severity}: [{self.code}] {self.message}"
