import os
from datetime import date

from PIL import Image

from posts_to_site.loader import load_posts
from posts_to_site.models import Post
from posts_to_site.renderer import BookRenderer

POSTS = os.path.join(os.path.dirname(__file__), "testdata", "_posts")


def test_render_book(tmp_path):
    output = str(tmp_path / "book.pdf")
    renderer = BookRenderer(title="Notes on .NET", output_path=output, paper_size="a4")
    assert renderer.render(load_posts(POSTS)) == output

    with open(output, "rb") as f:
        assert f.read(5) == b"%PDF-"
    assert not os.path.exists(output + ".tmp")


def test_render_nothing(tmp_path):
    output = str(tmp_path / "book.pdf")
    assert BookRenderer(output_path=output).render([]) is None
    assert not os.path.exists(output)


def test_chapter_elements_with_local_image(tmp_path):
    Image.new("RGB", (400, 200), "white").save(str(tmp_path / "chart.png"))
    post = Post(
        title="Costs & Limits",
        date=date(2024, 5, 1),
        body="# Costs & Limits\n\nIntro.\n\n![chart](chart.png)\n\n![remote](https://example.com/x.png)\n",
        tags=["azure"],
        path=str(tmp_path / "2024-05-01-costs.md"),
    )
    renderer = BookRenderer(output_path=str(tmp_path / "book.pdf"))
    elements = renderer._build_post_elements(post, 0)
    kinds = [type(e).__name__ for e in elements]
    # title, date line, intro paragraph, spacer, image, spacer; the leading
    # heading and the remote image are dropped
    assert kinds == ["Paragraph", "Paragraph", "Paragraph", "Spacer", "Image", "Spacer"]
    assert "Costs & Limits" in elements[0].getPlainText()
