"""PDF book renderer using reportlab."""

import logging
import os
from datetime import datetime
from urllib.parse import urlparse

from PIL import Image
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    Flowable,
    Image as RLImage,
    PageBreak,
    Paragraph,
    Preformatted,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from .html_parser import post_blocks
from .models import PAPER_SIZES

logger = logging.getLogger(__name__)


class BookRenderer:
    """Render a list of Posts into a formatted PDF book using reportlab.platypus."""

    MARGIN = 0.75 * inch
    CODE_LINE_LENGTH = 88

    def __init__(self, title="My Posts", output_path="book.pdf",
                 paper_size="letter", image_root=None):
        self.title = title
        self.output_path = output_path
        # directory that absolute image URLs such as /assets/x.png resolve against
        self.image_root = image_root

        size = PAPER_SIZES.get(paper_size, letter)
        self.PAGE_WIDTH, self.PAGE_HEIGHT = size
        self.body_width = self.PAGE_WIDTH - 2 * self.MARGIN

        self.styles = getSampleStyleSheet()
        self._define_styles()

        logger.debug("Paper size: %s (%.1fx%.1f)", paper_size, self.PAGE_WIDTH, self.PAGE_HEIGHT)

    def _define_styles(self):
        self.styles.add(ParagraphStyle(
            name="BookTitle",
            parent=self.styles["Title"],
            fontSize=28,
            leading=34,
            alignment=TA_CENTER,
            spaceAfter=20,
        ))
        self.styles.add(ParagraphStyle(
            name="BookSubtitle",
            parent=self.styles["Normal"],
            fontSize=14,
            leading=18,
            alignment=TA_CENTER,
            textColor="#666666",
            spaceAfter=12,
        ))
        self.styles.add(ParagraphStyle(
            name="ChapterTitle",
            parent=self.styles["Heading1"],
            fontSize=18,
            leading=22,
            spaceBefore=0,
            spaceAfter=6,
        ))
        self.styles.add(ParagraphStyle(
            name="ChapterDate",
            parent=self.styles["Normal"],
            fontSize=10,
            leading=14,
            textColor="#888888",
            spaceAfter=12,
        ))
        self.styles.add(ParagraphStyle(
            name="SectionHeading",
            parent=self.styles["Heading2"],
            fontSize=14,
            leading=18,
            spaceBefore=10,
            spaceAfter=4,
        ))
        self.styles.add(ParagraphStyle(
            name="BodyText2",
            parent=self.styles["Normal"],
            fontSize=11,
            leading=15,
            spaceAfter=8,
        ))
        self.styles.add(ParagraphStyle(
            name="CodeBlock",
            parent=self.styles["Code"],
            fontSize=8,
            leading=10,
            backColor="#f4f4f4",
            borderPadding=4,
            spaceBefore=4,
            spaceAfter=10,
        ))
        self.styles.add(ParagraphStyle(
            name="TOCEntry",
            parent=self.styles["Normal"],
            fontSize=11,
            leading=16,
        ))
        self.styles.add(ParagraphStyle(
            name="TOCHeading",
            parent=self.styles["Heading1"],
            fontSize=20,
            leading=24,
            alignment=TA_CENTER,
            spaceAfter=20,
        ))

    @staticmethod
    def _escape_xml(text):
        """Escape text for use in reportlab Paragraph XML."""
        return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")

    def _build_title_page(self, posts):
        """Build title page elements."""
        elements = []
        elements.append(Spacer(1, 2 * inch))
        elements.append(Paragraph(self._escape_xml(self.title), self.styles["BookTitle"]))
        elements.append(Spacer(1, 0.3 * inch))

        if posts:
            date_range = f"{posts[0].date.strftime('%B %Y')} – {posts[-1].date.strftime('%B %Y')}"
            elements.append(Paragraph(date_range, self.styles["BookSubtitle"]))
            elements.append(Spacer(1, 0.2 * inch))
            count_text = f"{len(posts)} posts"
            elements.append(Paragraph(count_text, self.styles["BookSubtitle"]))

        generated = f"Generated {datetime.now().strftime('%Y-%m-%d')}"
        elements.append(Spacer(1, 1 * inch))
        elements.append(Paragraph(generated, self.styles["BookSubtitle"]))
        elements.append(PageBreak())
        return elements

    def _resolve_image(self, src, post):
        """Local file for an image reference, or None for remote/missing images."""
        if urlparse(src).scheme in ("http", "https"):
            return None
        if src.startswith("/"):
            base = self.image_root or os.getcwd()
            path = os.path.join(base, src.lstrip("/"))
        else:
            base = os.path.dirname(post.path) if post.path else os.getcwd()
            path = os.path.join(base, src)
        return path if os.path.isfile(path) else None

    def _make_image_flowable(self, image_path, max_width=None, max_height=None):
        """Create a reportlab Image flowable with proper aspect ratio."""
        if max_width is None:
            max_width = self.body_width
        if max_height is None:
            max_height = 4 * inch

        try:
            with Image.open(image_path) as img:
                orig_w, orig_h = img.size
        except OSError as e:
            logger.warning("Could not process image %s: %s", image_path, e)
            return None

        aspect = orig_w / orig_h
        width = min(max_width, orig_w)
        height = width / aspect
        if height > max_height:
            height = max_height
            width = height * aspect
        return RLImage(image_path, width=width, height=height)

    def _build_post_elements(self, post, index):
        """Build flowable elements for a single post chapter."""
        elements = []

        title_text = self._escape_xml(post.title)
        anchor = f'<a name="post_{index}"/>'
        elements.append(Paragraph(f'{anchor}{title_text}', self.styles["ChapterTitle"]))

        date_str = post.date.strftime("%B %d, %Y")
        if post.tags:
            date_str += f" &mdash; {self._escape_xml(', '.join(post.tags))}"
        elements.append(Paragraph(date_str, self.styles["ChapterDate"]))

        blocks = post_blocks(post)
        # the chapter title already shows a leading "# Title" heading
        if blocks and blocks[0] == ("heading", post.title):
            blocks = blocks[1:]

        for kind, value in blocks:
            if kind == "heading":
                elements.append(Paragraph(self._escape_xml(value), self.styles["SectionHeading"]))
            elif kind == "text":
                para_text = self._escape_xml(" ".join(value.split()))
                elements.append(Paragraph(para_text, self.styles["BodyText2"]))
            elif kind == "code":
                elements.append(Preformatted(value, self.styles["CodeBlock"],
                                             maxLineLength=self.CODE_LINE_LENGTH))
            elif kind == "image":
                path = self._resolve_image(value, post)
                if path is None:
                    logger.debug("Skipping image %s in %s", value, post.slug)
                    continue
                img_flowable = self._make_image_flowable(path)
                if img_flowable:
                    elements.append(Spacer(1, 0.15 * inch))
                    elements.append(img_flowable)
                    elements.append(Spacer(1, 0.15 * inch))

        # PageBreak is added in render() loop, not here
        return elements

    def _add_page_number(self, canvas, doc):
        """Page number footer callback."""
        canvas.saveState()
        canvas.setFont("Helvetica", 9)
        page_num = canvas.getPageNumber()
        text = f"- {page_num} -"
        canvas.drawCentredString(self.PAGE_WIDTH / 2, 0.5 * inch, text)
        canvas.restoreState()

    def _make_doc(self, path):
        return SimpleDocTemplate(
            path,
            pagesize=(self.PAGE_WIDTH, self.PAGE_HEIGHT),
            leftMargin=self.MARGIN, rightMargin=self.MARGIN,
            topMargin=self.MARGIN, bottomMargin=self.MARGIN,
            title=self.title,
        )

    def _build_toc(self, posts, post_pages):
        elements = [Paragraph("Table of Contents", self.styles["TOCHeading"])]
        estimated_toc_pages = max(1, (len(posts) + 39) // 40)

        for i, post in enumerate(posts):
            raw_page = post_pages.get(i, "?")
            display_page = raw_page + estimated_toc_pages if isinstance(raw_page, int) else raw_page
            toc_line = (
                f'<a href="#post_{i}" color="blue">{self._escape_xml(post.title)}</a>'
                f' <font color="#888888">({post.date.isoformat()})</font>'
            )
            toc_table = Table([[
                Paragraph(toc_line, self.styles["TOCEntry"]),
                Paragraph(str(display_page), self.styles["TOCEntry"]),
            ]], colWidths=[self.body_width - 0.6 * inch, 0.6 * inch])
            toc_table.setStyle(TableStyle([
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("ALIGN", (1, 0), (1, 0), "RIGHT"),
            ]))
            elements.append(toc_table)
        elements.append(PageBreak())
        return elements

    def render(self, posts):
        """Render posts into a PDF book.

        Uses a two-pass approach: first render content to determine page numbers,
        then prepend a TOC with accurate page references.
        """
        if not posts:
            logger.warning("No posts to render.")
            return None

        logger.debug("Starting render: %d posts", len(posts))

        # --- Pass 1: Render content without TOC to get page counts ---
        tmp_path = self.output_path + ".tmp"
        page_tracker = _PageTracker()
        elements = self._build_title_page(posts)
        for i, post in enumerate(posts):
            elements.append(page_tracker.make_marker(i))
            elements.extend(self._build_post_elements(post, i))
            elements.append(PageBreak())

        logger.debug("Building pass 1 (page count)...")
        self._make_doc(tmp_path).build(elements, onFirstPage=self._add_page_number,
                                       onLaterPages=self._add_page_number)
        post_pages = page_tracker.page_numbers
        logger.debug("Pass 1 complete. Post page numbers: %s", post_pages)

        # --- Pass 2: Build final PDF with TOC ---
        final_elements = self._build_title_page(posts)
        final_elements.extend(self._build_toc(posts, post_pages))
        for i, post in enumerate(posts):
            final_elements.extend(self._build_post_elements(post, i))
            final_elements.append(PageBreak())

        logger.debug("Building pass 2 (final PDF)...")
        self._make_doc(self.output_path).build(final_elements, onFirstPage=self._add_page_number,
                                               onLaterPages=self._add_page_number)

        try:
            os.remove(tmp_path)
        except OSError:
            logger.debug("Could not remove %s", tmp_path)

        logger.info("PDF saved to %s", self.output_path)
        return self.output_path


class _PageTracker:
    """Tracks which page each post starts on during PDF generation."""

    def __init__(self):
        self.page_numbers = {}

    def make_marker(self, post_index):
        return _PageMarkerFlowable(self, post_index)


class _PageMarkerFlowable(Flowable):
    """Zero-height flowable that records its page number during layout."""

    def __init__(self, tracker, post_index):
        super().__init__()
        self.tracker = tracker
        self.post_index = post_index
        self.width = 0
        self.height = 0

    def wrap(self, available_width, available_height):
        return (0, 0)

    def draw(self):
        self.tracker.page_numbers[self.post_index] = self.canv.getPageNumber()
