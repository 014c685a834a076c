"""HTML parsing: extract content blocks from rendered post HTML."""

from html.parser import HTMLParser

from .html_renderer import render_body


class PostHTMLParser(HTMLParser):
    """Extract interleaved heading, text, code and image blocks from post HTML."""

    HEADINGS = ("h1", "h2", "h3", "h4", "h5", "h6")

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self._text_buf = []       # accumulates text for current text block
        self._code_buf = None     # not None while inside <pre>
        self._heading = None      # tag name while inside a heading
        self.blocks = []          # list of (kind, str)
        self._skip = 0
        self._skip_tags = {"script", "style", "noscript"}

    def _flush_text(self):
        """Flush accumulated text buffer as a text (or heading) block."""
        text = "".join(self._text_buf).strip()
        if text:
            self.blocks.append(("heading" if self._heading else "text", text))
        self._text_buf = []

    def handle_starttag(self, tag, attrs):
        attrs_dict = dict(attrs)
        if tag in self._skip_tags:
            self._skip += 1
            return
        if tag == "pre":
            self._flush_text()
            self._code_buf = []
            return
        if tag in self.HEADINGS:
            self._flush_text()
            self._heading = tag
            return
        if tag == "img":
            src = attrs_dict.get("src", "")
            if src and not src.startswith("data:"):
                # Flush any text before this image, then insert image block
                self._flush_text()
                self.blocks.append(("image", src))
        if tag == "br":
            self._text_buf.append("\n")
        if tag in ("p", "li", "tr", "blockquote"):
            self._flush_text()
        if tag in ("td", "th"):
            self._text_buf.append(" ")

    def handle_endtag(self, tag):
        if tag in self._skip_tags:
            self._skip = max(0, self._skip - 1)
            return
        if tag == "pre" and self._code_buf is not None:
            code = "".join(self._code_buf)
            if code.endswith("\n"):
                code = code[:-1]
            self.blocks.append(("code", code))
            self._code_buf = None
            return
        if tag in self.HEADINGS and self._heading == tag:
            self._flush_text()
            self._heading = None
            return
        if tag in ("p", "li", "tr", "blockquote", "ul", "ol", "table", "div"):
            self._flush_text()

    def handle_data(self, data):
        if self._skip:
            return
        if self._code_buf is not None:
            self._code_buf.append(data)
        else:
            self._text_buf.append(data)

    def get_blocks(self):
        """Return the collected content blocks."""
        self._flush_text()
        return self.blocks


def parse_html_content(html):
    """Parse HTML and return a list of (kind, value) blocks.

    ``kind`` is one of "heading", "text", "code" or "image".
    """
    parser = PostHTMLParser()
    parser.feed(html)
    parser.close()
    return parser.get_blocks()


def post_blocks(post):
    """Content blocks for a Post's Markdown body."""
    return parse_html_content(render_body(post.body))
