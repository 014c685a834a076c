import pytest

from posts_to_site.codeblocks import extract_code_blocks, find_code_blocks, reinsert_code_blocks
from posts_to_site.models import UnclosedFenceError

BODY = """Intro paragraph.

```csharp
var x = 1;
```

Some `inline` code and more text.

~~~~yaml
key: value
```
still yaml
~~~~

```
plain
```
"""


def test_find_code_blocks():
    blocks = find_code_blocks(BODY)
    assert [b.language for b in blocks] == ["csharp", "yaml", ""]
    assert blocks[0].code == "var x = 1;\n"
    assert blocks[0].line == 3
    assert blocks[0].fence == "```"
    # a shorter or different fence inside a block does not close it
    assert blocks[1].code == "key: value\n```\nstill yaml\n"
    assert blocks[1].fence == "~~~~"
    assert blocks[2].code == "plain\n"
    for block in blocks:
        assert BODY[block.start:block.end] == block.raw


def test_info_string_with_attributes():
    blocks = find_code_blocks("```bash title=\"run\"\nls\n```\n")
    assert blocks[0].language == "bash"


def test_inline_triple_backticks_are_not_a_fence():
    assert find_code_blocks("```code``` inline.\n") == []


def test_indented_fence_and_crlf():
    body = "Text\r\n   ```xml\r\n<a/>\r\n   ```\r\n"
    blocks = find_code_blocks(body)
    assert len(blocks) == 1
    assert blocks[0].language == "xml"
    assert blocks[0].code == "<a/>\r\n"


def test_unclosed_fence():
    body = "Para\n\n```csharp\nint x;\n"
    with pytest.raises(UnclosedFenceError) as exc:
        find_code_blocks(body)
    assert exc.value.line == 3

    blocks = find_code_blocks(body, strict=False)
    assert blocks[0].code == "int x;\n"
    assert blocks[0].end == len(body)


def test_closing_fence_without_trailing_newline():
    blocks = find_code_blocks("```\na\n```")
    assert blocks[0].code == "a\n"
    assert blocks[0].end == len("```\na\n```")


def test_extract_and_reinsert_round_trip():
    skeleton, pairs = extract_code_blocks(BODY)
    assert len(pairs) == 3
    assert "var x = 1;" not in skeleton
    assert "Some `inline` code" in skeleton
    assert reinsert_code_blocks(skeleton, pairs) == BODY


def test_extract_without_blocks():
    skeleton, pairs = extract_code_blocks("no code here")
    assert skeleton == "no code here"
    assert pairs == []


def test_reinsert_missing_placeholder():
    skeleton, pairs = extract_code_blocks(BODY)
    token = pairs[0][0]
    with pytest.raises(ValueError):
        reinsert_code_blocks(skeleton.replace(token, ""), pairs)
