"""Normalize a URL, raw text or prompt into a BlogContent record."""

from __future__ import annotations

import logging
import re

import requests
import trafilatura
from bs4 import BeautifulSoup, Tag

from config import AppConfig
from models import BlogContent, ContentSource
from services.resilience import ExternalServiceError, ResiliencePolicy

logger = logging.getLogger(__name__)

_USER_AGENT = "Mozilla/5.0 (compatible; BlogEmailAgent/1.0)"

_MAX_TITLE_LINE_CHARS = 100

DEFAULT_TEXT_TITLE = "Email Content"
PROMPT_TITLE = "Custom Email"


class FetchError(ExternalServiceError):
    """Raised when a URL cannot be fetched or returns a non-success status."""


class ExtractionError(ValueError):
    """Raised when no readable article body can be isolated from fetched markup."""


class ContentRetriever:
    """Fetch or parse blog content from exactly one input source."""

    def __init__(self, config: AppConfig) -> None:
        self._request_timeout_seconds = config.request_timeout_seconds
        self._resilience = ResiliencePolicy(
            name="content_fetch",
            max_attempts=config.max_external_retries,
        )

    def retrieve(self, source: ContentSource) -> BlogContent:
        if source.url:
            logger.info("Fetching content from: %s", source.url)
            html = self._fetch(source.url)
            title, text = extract_article(html, url=source.url)
            return BlogContent(title=title, text=text, source_url=source.url)

        if source.text:
            logger.info("Processing provided text content")
            return parse_text_input(source.text)

        logger.info("Processing prompt input")
        return BlogContent(title=PROMPT_TITLE, text=str(source.prompt))

    def _fetch(self, url: str) -> str:
        def _operation() -> requests.Response:
            response = requests.get(
                url,
                timeout=self._request_timeout_seconds,
                headers={"User-Agent": _USER_AGENT},
            )
            response.raise_for_status()
            return response

        response = self._resilience.execute(_operation, error_type=FetchError)
        return response.text


def extract_article(html: str, *, url: str | None = None) -> tuple[str, str]:
    """Return ``(title, text)`` for the main article in an HTML page.

    The body comes from trafilatura with links, comments and tables left out;
    the title is read from the page head.
    """
    text = trafilatura.extract(
        html,
        url=url,
        include_comments=False,
        include_tables=False,
        include_formatting=False,
        include_links=False,
    )
    if not text or not text.strip():
        raise ExtractionError("Could not extract article content from URL")

    title = _extract_title(BeautifulSoup(html, "html.parser"))
    return title, text.strip()


def parse_text_input(text: str) -> BlogContent:
    """Split raw text into a title and body.

    A short first line followed by more text is the title; otherwise the first
    sentence is used.
    """
    lines = [line for line in text.strip().splitlines() if line.strip()]

    title = DEFAULT_TEXT_TITLE
    body = text
    if lines:
        first_line = lines[0].strip()
        if len(first_line) < _MAX_TITLE_LINE_CHARS and len(lines) > 1:
            title = re.sub(r"^#+\s*", "", first_line)
            body = "\n".join(lines[1:]).strip()
        else:
            first_sentence = re.match(r"^[^.!?]+[.!?]", first_line)
            if first_sentence:
                title = first_sentence.group(0).strip()

    return BlogContent(title=title, text=body)


def _extract_title(soup: BeautifulSoup) -> str:
    og_title = soup.find("meta", attrs={"property": "og:title"})
    if isinstance(og_title, Tag):
        content = str(og_title.get("content", "")).strip()
        if content:
            return content

    for selector in ("title", "h1"):
        node = soup.find(selector)
        if node is not None:
            text = _collapse_whitespace(node.get_text(" "))
            if text:
                return text

    return "Untitled"


def _collapse_whitespace(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()
