"""Render posts to HTML pages and write a static site tree."""

import html
import logging
import os

import markdown

from .codeblocks import find_code_blocks
from .storage import save_posts
from .utils import slugify

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["tables"]

PERMALINK_STYLES = {
    "date": "/:categories/:year/:month/:day/:title.html",
    "pretty": "/:categories/:year/:month/:day/:title/",
    "ordinal": "/:categories/:year/:y_day/:title.html",
    "none": "/:categories/:title.html",
}

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{page_title}</title>
</head>
<body>
{content}
</body>
</html>
"""

LAYOUTS = {
    "default": "<main>\n{body}\n</main>",
    "page": "<main>\n<h1>{title}</h1>\n{body}\n</main>",
    "post": (
        "<article class=\"post\">\n"
        "<header>\n<h1>{title}</h1>\n"
        "<time datetime=\"{iso_date}\">{display_date}</time>\n"
        "{terms}"
        "</header>\n"
        "{body}\n"
        "</article>"
    ),
}


def _token_base(body):
    base = "codeblockplaceholder"
    while base in body:
        base += "x"
    return base


def _dedent_code(block):
    # content lines lose up to as many spaces as the opening fence was indented
    indent = len(block.raw) - len(block.raw.lstrip(" "))
    if not indent:
        return block.code
    lines = block.code.splitlines(keepends=True)
    out = []
    for line in lines:
        strip = min(indent, len(line) - len(line.lstrip(" ")))
        out.append(line[strip:])
    return "".join(out)


def _code_html(block):
    code = html.escape(_dedent_code(block), quote=False)
    if block.language:
        return f"<pre><code class=\"language-{html.escape(block.language)}\">{code}</code></pre>"
    return f"<pre><code>{code}</code></pre>"


def render_body(body):
    """Convert a Markdown body to HTML. Code blocks are emitted verbatim.

    Fenced blocks are found with the same scanner the checks use, swapped
    for placeholder paragraphs while Markdown renders the prose, and put
    back as ``<pre><code class="language-xyz">``. An unclosed fence runs to
    the end of the document.
    """
    blocks = find_code_blocks(body, strict=False)
    base = _token_base(body)
    parts = []
    tokens = []
    last = 0
    for index, block in enumerate(blocks):
        token = f"{base}{index}{base}"
        parts.append(body[last:block.start])
        parts.append(f"\n\n{token}\n\n")
        tokens.append((token, _code_html(block)))
        last = block.end
    parts.append(body[last:])

    rendered = markdown.markdown("".join(parts), extensions=MARKDOWN_EXTENSIONS,
                                 output_format="html")
    for token, code_html in tokens:
        if f"<p>{token}</p>" in rendered:
            rendered = rendered.replace(f"<p>{token}</p>", code_html, 1)
        else:
            rendered = rendered.replace(token, code_html, 1)
    return rendered


def _terms_html(post):
    parts = []
    if post.categories:
        items = "".join(f"<li>{html.escape(c)}</li>" for c in post.categories)
        parts.append(f"<ul class=\"categories\">{items}</ul>\n")
    if post.tags:
        items = "".join(f"<li>{html.escape(t)}</li>" for t in post.tags)
        parts.append(f"<ul class=\"tags\">{items}</ul>\n")
    return "".join(parts)


def render_page(post, config):
    """Full HTML document for ``post`` wrapped in its layout."""
    layout = LAYOUTS.get(post.layout)
    if layout is None:
        logger.warning("%s: unknown layout %r, using 'default'", post.path or post.slug, post.layout)
        layout = LAYOUTS["default"]

    content = layout.format(
        title=html.escape(post.title),
        iso_date=post.date.isoformat(),
        display_date=html.escape(post.date.strftime(config.date_format)),
        terms=_terms_html(post),
        body=render_body(post.body),
    )
    page_title = post.title
    if config.title:
        page_title = f"{post.title} | {config.title}"
    return _PAGE.format(page_title=html.escape(page_title), content=content)


def permalink(post, config):
    """URL path of a post, built from the configured permalink style."""
    pattern = PERMALINK_STYLES.get(config.permalink, config.permalink)
    categories = "/".join(slugify(c) for c in post.categories)
    replacements = {
        ":categories": categories,
        ":year": f"{post.date.year:04d}",
        ":month": f"{post.date.month:02d}",
        ":day": f"{post.date.day:02d}",
        ":y_day": f"{post.date.timetuple().tm_yday:03d}",
        ":title": post.slug,
    }
    url = pattern
    # longest first so ":y_day" is not eaten by a shorter key
    for key in sorted(replacements, key=len, reverse=True):
        url = url.replace(key, replacements[key])
    while "//" in url:
        url = url.replace("//", "/")
    if not url.startswith("/"):
        url = "/" + url
    return config.baseurl.rstrip("/") + url


def output_path(url, destination, baseurl=""):
    """File that serves ``url`` inside ``destination``."""
    if baseurl and url.startswith(baseurl.rstrip("/") + "/"):
        url = url[len(baseurl.rstrip("/")):]
    relative = url.lstrip("/")
    if not relative or relative.endswith("/"):
        relative += "index.html"
    return os.path.join(destination, *relative.split("/"))


class SiteBuilder:
    """Write rendered posts, an index page and a JSON post index."""

    def __init__(self, config):
        self.config = config
        self.destination = config.destination_path

    def _write(self, path, text):
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        logger.debug("Wrote %s", path)

    def render_index(self, posts, urls):
        items = []
        for post in sorted(posts, key=lambda p: (p.date, p.slug), reverse=True):
            items.append(
                f"<li><time datetime=\"{post.date.isoformat()}\">"
                f"{html.escape(post.date.strftime(self.config.date_format))}</time> "
                f"<a href=\"{html.escape(urls[post.path or post.slug])}\">{html.escape(post.title)}</a></li>"
            )
        content = (
            f"<main>\n<h1>{html.escape(self.config.title)}</h1>\n"
            f"<ul class=\"posts\">\n" + "\n".join(items) + "\n</ul>\n</main>"
        )
        return _PAGE.format(page_title=html.escape(self.config.title), content=content)

    def build(self, posts):
        """Render ``posts``; returns a mapping of post path to written file."""
        written = {}
        urls = {}
        owners = {}
        # nothing is written until every post has a URL of its own
        for post in posts:
            key = post.path or post.slug
            url = permalink(post, self.config)
            path = output_path(url, self.destination, self.config.baseurl)
            if path in owners:
                raise ValueError(f"{key} and {owners[path]} map to the same URL {url}")
            owners[path] = key
            urls[key] = url
            written[key] = path

        for post in posts:
            self._write(written[post.path or post.slug], render_page(post, self.config))

        self._write(os.path.join(self.destination, "index.html"), self.render_index(posts, urls))
        index_path = os.path.join(self.destination, "assets", "data", "posts.json")
        os.makedirs(os.path.dirname(index_path), exist_ok=True)
        save_posts(posts, index_path, urls=urls)
        logger.info("Built %d posts into %s", len(posts), self.destination)
        return written
