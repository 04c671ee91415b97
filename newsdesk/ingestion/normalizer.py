"""HTML cleanup, excerpt and slug generation for feed items."""

import html
import re
from typing import Callable, List, Optional, Tuple

import pendulum
from bs4 import BeautifulSoup, Comment

from .models import NormalizedItem, RawFeedItem

MAX_TITLE_LENGTH = 200
MAX_SLUG_LENGTH = 50
MIN_TEXT_LENGTH = 50
MIN_CONTENT_LENGTH = 20
MIN_PARAGRAPH_LENGTH = 10

FALLBACK_NOTE = (
    "This article may contain media content, documents, or interactive elements "
    "that are best viewed on the original site."
)
GENERIC_EXCERPT = "Article imported from RSS feed."

BLOCK_TAGS = ["p", "li", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre", "td", "figcaption"]
NOISE_TAGS = ["script", "style", "object", "embed", "noscript", "iframe"]
WRAPPER_CLASSES = ("wp-block-file", "wp-block-button", "wp-block-buttons", "themify_builder")
FRAMEWORK_ATTR_PREFIX = "wp-"

UI_WORDS_RE = re.compile(r"\b(download|more info|read more|click here|view pdf|embed of)\b", re.I)
FILE_REF_RE = re.compile(r"\b[a-z0-9-]+\.(pdf|doc|docx|jpg|png|gif)\b", re.I)
URL_RE = re.compile(r"\bhttps?://\S+", re.I)
WHITESPACE_RE = re.compile(r"\s+")
SENTENCE_END_RE = re.compile(r"[.!?]+")

ContentExtractor = Callable[[RawFeedItem], Optional[str]]

# Richest field first. feedparser exposes content:encoded as ``content``.
CONTENT_EXTRACTORS: List[Tuple[str, ContentExtractor]] = [
    ("content", lambda item: item.content),
    ("summary", lambda item: item.summary),
    ("description", lambda item: item.description),
    ("media_description", lambda item: item.media_description),
]


def select_raw_content(item: RawFeedItem, extractors=None) -> str:
    """First non-blank field produced by the extractor list."""
    for _, extract in extractors or CONTENT_EXTRACTORS:
        value = extract(item)
        if value and value.strip():
            return value
    return ""


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text).strip()


def strip_ui_noise(text: str) -> str:
    """Drop button labels, file names and bare URLs from plain text."""
    text = UI_WORDS_RE.sub("", text)
    text = FILE_REF_RE.sub("", text)
    text = URL_RE.sub("", text)
    return collapse_whitespace(text)


def clean_title(title: str) -> str:
    return collapse_whitespace(title)[:MAX_TITLE_LENGTH]


def slugify(title: str) -> str:
    """Lowercase ASCII slug of at most 50 characters."""
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")[:MAX_SLUG_LENGTH].strip("-")


def _remove_builder_regions(soup: BeautifulSoup) -> None:
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        if comment.strip() != "themify_builder_content" or comment.parent is None:
            continue
        node = comment.next_sibling
        while node is not None:
            following = node.next_sibling
            is_end = isinstance(node, Comment) and node.strip() == "/themify_builder_content"
            node.extract()
            if is_end:
                break
            node = following
        comment.extract()


def _has_wrapper_class(tag) -> bool:
    classes = tag.get("class") or []
    return any(wrapper in cls for cls in classes for wrapper in WRAPPER_CLASSES)


def _is_download_link(tag) -> bool:
    href = (tag.get("href") or "").lower()
    classes = " ".join(tag.get("class") or [])
    return tag.has_attr("download") or ".pdf" in href or "wp-block-file__button" in classes


def _strip_framework_attributes(tag) -> None:
    for attr in list(tag.attrs):
        value = tag.attrs[attr]
        text = " ".join(value) if isinstance(value, list) else str(value)
        if attr.startswith("data-wp-"):
            del tag.attrs[attr]
        elif attr in ("class", "id", "aria-describedby") and text.startswith(FRAMEWORK_ATTR_PREFIX):
            del tag.attrs[attr]


def sanitize_html(raw_html: str) -> BeautifulSoup:
    """Parse ``raw_html`` and remove scripts, builder markup and download links."""
    soup = BeautifulSoup(raw_html, "html.parser")

    for tag in soup(NOISE_TAGS):
        tag.decompose()
    _remove_builder_regions(soup)

    for tag in soup.find_all(_has_wrapper_class):
        if not tag.decomposed:
            tag.decompose()
    for tag in soup.find_all("a"):
        if _is_download_link(tag):
            tag.decompose()

    for tag in soup.find_all(True):
        _strip_framework_attributes(tag)

    for tag in soup.find_all(["div", "span"]):
        if not tag.decomposed and not tag.get_text(strip=True) and tag.find("img") is None:
            tag.decompose()

    return soup


def extract_paragraphs(soup: BeautifulSoup) -> List[str]:
    """Plain-text paragraphs, one per innermost block element or blank-line run."""
    blocks = [b for b in soup.find_all(BLOCK_TAGS) if b.find(BLOCK_TAGS) is None]
    if blocks:
        chunks = [b.get_text(" ") for b in blocks]
    else:
        chunks = re.split(r"\n\s*\n", soup.get_text())

    paragraphs = [strip_ui_noise(chunk) for chunk in chunks]
    return [p for p in paragraphs if len(p) > MIN_PARAGRAPH_LENGTH]


def clean_content(raw_html: str) -> str:
    """
    Turn feed HTML into simple paragraph markup.

    When at least 50 characters of readable text survive, the result is one
    ``<p>`` per paragraph. Otherwise the sanitized markup is returned as is.
    """
    if not raw_html or not raw_html.strip():
        return ""

    soup = sanitize_html(raw_html)
    paragraphs = extract_paragraphs(soup)

    if sum(len(p) for p in paragraphs) > MIN_TEXT_LENGTH:
        return "\n".join(f"<p>{html.escape(p, quote=False)}</p>" for p in paragraphs)

    markup = collapse_whitespace(str(soup))
    markup = re.sub(r">\s+<", "><", markup)
    if markup and "<p" not in markup and len(markup) > MIN_PARAGRAPH_LENGTH:
        markup = f"<p>{markup}</p>"
    return markup


def html_to_text(content: str) -> str:
    if not content:
        return ""
    return strip_ui_noise(BeautifulSoup(content, "html.parser").get_text(" "))


def generate_excerpt(content: str, title: str) -> str:
    """
    Short plain-text summary. Never empty.

    Prefers the first sentence when it is 21-200 characters long, then the
    first ~150 characters cut at a word boundary, then a title-based line.
    """
    text = html_to_text(content)

    if len(text) > 20:
        first_sentence = SENTENCE_END_RE.split(text)[0].strip()
        if 20 < len(first_sentence) <= 200:
            return first_sentence + "."

        excerpt = text[:150].strip()
        last_space = excerpt.rfind(" ")
        if last_space > 100:
            excerpt = excerpt[:last_space]
        return excerpt + "..."

    if title and len(title) > 10:
        return f"Article from RSS feed: {title[:150]}..."

    return GENERIC_EXCERPT


def fallback_content(excerpt: str, title: str, link: str, feed_name: str) -> str:
    """Minimal body pointing readers to the original article."""
    lead = excerpt if len(excerpt) > 10 else f"{title} - Article from {feed_name}"
    return (
        f"<p>{html.escape(lead, quote=False)}</p>"
        f"<p>{FALLBACK_NOTE}</p>"
        f'<p><a href="{html.escape(link)}" target="_blank" rel="noopener">'
        f"Read the full article at {html.escape(feed_name, quote=False)}</a></p>"
    )


class ContentNormalizer:
    """Turn a raw feed item into a clean draft-ready item."""

    def __init__(self, extractors: Optional[List[Tuple[str, ContentExtractor]]] = None) -> None:
        self.extractors = extractors or CONTENT_EXTRACTORS

    def normalize(self, item: RawFeedItem, feed_name: str) -> NormalizedItem:
        title = clean_title(item.title or "")
        link = (item.link or "").strip()

        content = clean_content(select_raw_content(item, self.extractors))

        if len(content) < MIN_TEXT_LENGTH:
            backup = clean_content(item.description or item.summary or "")
            if len(backup) > len(content):
                content = backup

        excerpt = generate_excerpt(content, title)

        if len(content) < MIN_CONTENT_LENGTH:
            content = fallback_content(excerpt, title, link, feed_name)

        return NormalizedItem(
            title=title,
            content=content,
            excerpt=excerpt,
            link=link,
            published_at=item.published or pendulum.now("UTC"),
            feed_name=feed_name,
        )
