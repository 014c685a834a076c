"""Posts-to-Site library.

Reads date-prefixed Markdown posts with YAML front-matter, checks them for
content-integrity problems, and renders them to a static HTML site, a post
index (JSON/YAML/CSV) or a PDF book.
"""

from .models import (
    Post,
    CodeBlock,
    Issue,
    PostError,
    FrontMatterError,
    UnclosedFenceError,
    PAPER_SIZES,
)
from .utils import setup_logging, slugify
from .frontmatter import split_front_matter, parse_front_matter, normalize_terms, parse_date
from .codeblocks import find_code_blocks, extract_code_blocks, reinsert_code_blocks
from .loader import parse_filename, parse_post, load_post, load_posts
from .config import SiteConfig, ConfigError, load_config
from .html_renderer import render_body, render_page, permalink, SiteBuilder
from .html_parser import parse_html_content, PostHTMLParser
from .renderer import BookRenderer
from .storage import save_posts, load_posts_from_file
from .links import find_links, LinkChecker
from .validate import check_text, check_post, check_posts, has_errors

__all__ = [
    "Post",
    "CodeBlock",
    "Issue",
    "PostError",
    "FrontMatterError",
    "UnclosedFenceError",
    "PAPER_SIZES",
    "setup_logging",
    "slugify",
    "split_front_matter",
    "parse_front_matter",
    "normalize_terms",
    "parse_date",
    "find_code_blocks",
    "extract_code_blocks",
    "reinsert_code_blocks",
    "parse_filename",
    "parse_post",
    "load_post",
    "load_posts",
    "SiteConfig",
    "ConfigError",
    "load_config",
    "render_body",
    "render_page",
    "permalink",
    "SiteBuilder",
    "parse_html_content",
    "PostHTMLParser",
    "BookRenderer",
    "save_posts",
    "load_posts_from_file",
    "find_links",
    "LinkChecker",
    "check_text",
    "check_post",
    "check_posts",
    "has_errors",
]
