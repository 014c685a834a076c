"""Find, extract and reinsert fenced code blocks in a Markdown body."""

import re

from .models import CodeBlock, UnclosedFenceError

_OPEN_RE = re.compile(r'^ {0,3}(?P<fence>`{3,}|~{3,})(?P<info>.*)$')
_CLOSE_RE = re.compile(r'^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*$')


def _strip_eol(line):
    return line.rstrip("\r\n")


def _opening_fence(line):
    """Return (fence, language) when ``line`` opens a fenced block."""
    m = _OPEN_RE.match(_strip_eol(line))
    if not m:
        return None
    fence, info = m.group("fence"), m.group("info").strip()
    # a backtick fence's info string may not contain backticks (inline code)
    if fence[0] == "`" and "`" in info:
        return None
    language = info.split()[0] if info else ""
    return fence, language.strip("{}.")


def _closes(line, fence):
    m = _CLOSE_RE.match(_strip_eol(line))
    if not m:
        return False
    closing = m.group("fence")
    return closing[0] == fence[0] and len(closing) >= len(fence)


def find_code_blocks(body, strict=True):
    """Return every fenced code block in ``body`` in document order.

    An unclosed fence raises UnclosedFenceError, unless ``strict`` is False,
    in which case the block runs to the end of the document.
    """
    blocks = []
    lines = body.splitlines(keepends=True)
    offset = 0
    i = 0
    while i < len(lines):
        opened = _opening_fence(lines[i])
        if opened is None:
            offset += len(lines[i])
            i += 1
            continue

        fence, language = opened
        start, start_line = offset, i + 1
        offset += len(lines[i])
        j = i + 1
        content_start = offset
        while j < len(lines) and not _closes(lines[j], fence):
            offset += len(lines[j])
            j += 1

        if j == len(lines):
            if strict:
                raise UnclosedFenceError(
                    f"code block opened with {fence!r} is never closed", line=start_line)
            code = body[content_start:]
            blocks.append(CodeBlock(language=language, code=code, fence=fence,
                                    start=start, end=len(body), line=start_line,
                                    raw=body[start:]))
            break

        code = body[content_start:offset]
        offset += len(lines[j])
        blocks.append(CodeBlock(language=language, code=code, fence=fence,
                                start=start, end=offset, line=start_line,
                                raw=body[start:offset]))
        i = j + 1
    return blocks


def _marker_for(body):
    marker = "\x00"
    while marker in body:
        marker += "\x00"
    return marker


def extract_code_blocks(body):
    """Replace every code block with a placeholder token.

    Returns ``(skeleton, pairs)`` where ``pairs`` is a list of
    ``(token, CodeBlock)``; pass both to reinsert_code_blocks to get the
    body back.
    """
    blocks = find_code_blocks(body)
    marker = _marker_for(body)
    parts = []
    pairs = []
    last = 0
    for index, block in enumerate(blocks):
        token = f"{marker}codeblock-{index}{marker}"
        parts.append(body[last:block.start])
        parts.append(token)
        pairs.append((token, block))
        last = block.end
    parts.append(body[last:])
    return "".join(parts), pairs


def reinsert_code_blocks(skeleton, pairs):
    """Inverse of extract_code_blocks."""
    for token, block in pairs:
        if token not in skeleton:
            raise ValueError(f"placeholder for code block at line {block.line} is missing")
        skeleton = skeleton.replace(token, block.raw, 1)
    return skeleton
