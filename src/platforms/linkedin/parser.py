"""LinkedIn alert-email parser: job cards into JobRecord objects.

Design rules:
  - Every field lookup is an ordered list of strategies; first hit wins.
  - A card without a usable job URL is dropped; a card missing only its
    title or company gets a placeholder instead.
  - Final acceptance is decided by the shared record validator, never here.
  - Bad markup never raises out of parse_email.
"""

import logging
import re
from collections.abc import Callable

from bs4 import BeautifulSoup, Tag

from src.core.schemas import JobRecord
from src.core.validation import safe_parse_job
from src.platforms.base import AlertEmailParser
from src.platforms.linkedin.selectors import (
    BOLD_TITLE_LINK_SELECTORS,
    CARD_SELECTORS,
    COMPANY_ALT_PLACEHOLDERS,
    COMPANY_IMAGE_SELECTOR,
    HEADING_TITLE_SELECTORS,
    JOB_LINK_SELECTOR,
    LOCATION_PARAGRAPH_SELECTOR,
    LOCATION_SEPARATOR,
    MIN_TITLE_LENGTH,
    UNKNOWN_COMPANY,
    UNKNOWN_TITLE,
)
from src.platforms.linkedin.urls import clean_job_url, extract_job_id

logger = logging.getLogger(__name__)

# Tried in order over the flattened card text when no "·" paragraph exists
LOCATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"United States(?:\s*\([^)]+\))?", re.IGNORECASE),
    re.compile(r"Remote", re.IGNORECASE),
    re.compile(r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*),\s*([A-Z]{2})(?:\s*\([^)]+\))?"),
)

TitleStrategy = Callable[[Tag], str | None]


def _text(el: Tag) -> str:
    """Trimmed text with whitespace runs collapsed."""
    return " ".join(el.get_text().split())


def _title_from_bold_link(card: Tag) -> str | None:
    for selector in BOLD_TITLE_LINK_SELECTORS:
        link = card.select_one(selector)
        if link is not None:
            text = _text(link)
            if text:
                return text
    return None


def _title_from_text_link(card: Tag) -> str | None:
    for link in card.select(JOB_LINK_SELECTOR):
        if link.find("img") is not None:
            continue
        text = _text(link)
        if len(text) >= MIN_TITLE_LENGTH:
            return text
    return None


def _title_from_heading(card: Tag) -> str | None:
    for selector in HEADING_TITLE_SELECTORS:
        heading = card.select_one(selector)
        if heading is None:
            continue
        text = _text(heading)
        if len(text) >= MIN_TITLE_LENGTH:
            return text
    return None


TITLE_STRATEGIES: tuple[TitleStrategy, ...] = (
    _title_from_bold_link,
    _title_from_text_link,
    _title_from_heading,
)


class LinkedInCardExtractor:
    """Turns one job-card fragment into a validated JobRecord, or None."""

    def extract(self, card: Tag) -> JobRecord | None:
        link = card.select_one(JOB_LINK_SELECTOR)
        href = link.get("href") if link is not None else None
        if not isinstance(href, str) or not href.strip():
            logger.debug("Card has no job link, skipping")
            return None

        url = clean_job_url(href)
        job_id = extract_job_id(url)
        if job_id is None:
            logger.debug("Card link is not a LinkedIn job URL: %s", url)
            return None

        title = self.parse_title(card)
        company = self.parse_company_from_image(card)
        paragraph_company, location = self.parse_location(card)
        company = company or paragraph_company or UNKNOWN_COMPANY

        record = safe_parse_job(
            {
                "job_id": job_id,
                "title": title,
                "company": company,
                "location": location,
                "url": url,
            }
        )
        if record is None:
            logger.warning("Job validation failed for job %s", job_id)
        return record

    @staticmethod
    def parse_title(card: Tag) -> str:
        for strategy in TITLE_STRATEGIES:
            title = strategy(card)
            if title:
                return title
        return UNKNOWN_TITLE

    @staticmethod
    def parse_company_from_image(card: Tag) -> str:
        """Alt text of the first logo with a non-empty alt, minus badge values."""
        for img in card.select(COMPANY_IMAGE_SELECTOR):
            alt = str(img.get("alt") or "").strip()
            if not alt:
                continue
            if alt.lower() in COMPANY_ALT_PLACEHOLDERS:
                return ""
            return alt
        return ""

    @staticmethod
    def parse_location(card: Tag) -> tuple[str, str]:
        """Return (company hint, location).

        The company hint is the first segment of a "Company · Location"
        paragraph; callers use it only when the logo gave no company.
        """
        company = ""
        location = ""
        for p in card.select(LOCATION_PARAGRAPH_SELECTOR):
            text = _text(p)
            if LOCATION_SEPARATOR not in text:
                continue
            parts = [part.strip() for part in text.split(LOCATION_SEPARATOR)]
            if not company and parts[0]:
                company = parts[0]
            location = f" {LOCATION_SEPARATOR} ".join(parts[1:]).strip()
            if location:
                return company, location

        card_text = " ".join(card.get_text(" ").split())
        for pattern in LOCATION_PATTERNS:
            match = pattern.search(card_text)
            if match:
                return company, match.group(0)
        return company, ""


class LinkedInEmailParser(AlertEmailParser):
    """Parses LinkedIn job alert emails into unique JobRecord objects."""

    def __init__(self, extractor: LinkedInCardExtractor | None = None) -> None:
        self._extractor = extractor or LinkedInCardExtractor()

    @property
    def platform_id(self) -> str:
        return "linkedin"

    def parse_email(self, html_body: str) -> list[JobRecord]:
        soup = BeautifulSoup(html_body, "html.parser")
        cards = self._find_cards(soup)

        records: list[JobRecord] = []
        for card in cards:
            try:
                record = self._extractor.extract(card)
            except Exception:
                logger.debug("Failed to parse card, skipping", exc_info=True)
                continue
            if record is not None:
                records.append(record)

        unique = self._deduplicate(records)
        logger.info(
            "Parsed jobs from email: %d cards, %d extracted, %d unique",
            len(cards), len(records), len(unique),
        )
        return unique

    @staticmethod
    def _find_cards(soup: BeautifulSoup) -> list[Tag]:
        for selector in CARD_SELECTORS:
            cards = soup.select(selector)
            if cards:
                return cards
        return []

    @staticmethod
    def _deduplicate(records: list[JobRecord]) -> list[JobRecord]:
        seen: set[str] = set()
        unique: list[JobRecord] = []
        for record in records:
            if record.job_id not in seen:
                seen.add(record.job_id)
                unique.append(record)
        return unique
