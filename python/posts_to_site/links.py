"""Find external links in post bodies and check that they resolve."""

import logging
import re

import requests

from .codeblocks import find_code_blocks

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; posts-to-site/1.0; link-check)"

_INLINE_LINK_RE = re.compile(r'\]\(\s*<?(https?://[^)\s>]+)>?(?:\s+"[^"]*")?\s*\)')
_AUTOLINK_RE = re.compile(r'<(https?://[^>\s]+)>')
_BARE_URL_RE = re.compile(r'(?<![(<"])\bhttps?://[^\s)<>\]"]+')
_INLINE_CODE_RE = re.compile(r'(`+)(?:.+?)\1', re.DOTALL)


def _without_code(body):
    blocks = find_code_blocks(body, strict=False)
    parts = []
    last = 0
    for block in blocks:
        parts.append(body[last:block.start])
        parts.append("\n")
        last = block.end
    parts.append(body[last:])
    return _INLINE_CODE_RE.sub("", "".join(parts))


def find_links(body):
    """External http(s) URLs in ``body``, in order, without duplicates.

    Code blocks and inline code spans are ignored.
    """
    skeleton = _without_code(body)

    matches = []
    for regex in (_INLINE_LINK_RE, _AUTOLINK_RE, _BARE_URL_RE):
        for m in regex.finditer(skeleton):
            group = 1 if regex.groups else 0
            matches.append((m.start(group), m.group(group).rstrip(".,;:!?'")))

    found = []
    for _, url in sorted(matches):
        if url not in found:
            found.append(url)
    return found


class LinkChecker:
    """Check URLs with HEAD (falling back to GET), caching each answer."""

    def __init__(self, timeout=10, session=None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        self._cache = {}

    def check(self, url):
        """Return ``(ok, detail)`` for ``url``."""
        if url in self._cache:
            return self._cache[url]

        try:
            resp = self.session.head(url, allow_redirects=True, timeout=self.timeout)
            if resp.status_code in (405, 501):
                logger.debug("HEAD not allowed for %s, retrying with GET", url)
                resp = self.session.get(url, allow_redirects=True, timeout=self.timeout, stream=True)
                resp.close()
            if resp.ok:
                result = (True, str(resp.status_code))
            else:
                result = (False, f"HTTP {resp.status_code} {resp.reason or ''}".strip())
        except requests.RequestException as e:
            result = (False, f"{type(e).__name__}: {e}")

        logger.debug("Checked %s: %s", url, result[1])
        self._cache[url] = result
        return result

    def check_body(self, body):
        """``[(url, detail)]`` for every broken link in ``body``."""
        broken = []
        for url in find_links(body):
            ok, detail = self.check(url)
            if not ok:
                broken.append((url, detail))
        return broken
