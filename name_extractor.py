"""
Card Name Extraction
Picks the most likely card-name line out of raw OCR text
"""
import re
import logging
from typing import List

logger = logging.getLogger(__name__)

MIN_LINE_LENGTH = 3
NON_NAME_CHARS = re.compile(r'[^a-zA-Z\s]')


def rank_candidate_lines(raw_text: str) -> List[str]:
    """
    Return the cleaned OCR lines, longest first.
    Lines shorter than MIN_LINE_LENGTH (after trimming) are dropped before
    digits and punctuation are stripped, and lines left empty by the strip
    are omitted. Equal lengths keep their input order.
    """
    if not raw_text or not isinstance(raw_text, str):
        return []

    lines = [line.strip() for line in raw_text.split('\n')]
    lines = [line for line in lines if len(line) >= MIN_LINE_LENGTH]
    cleaned = [NON_NAME_CHARS.sub('', line) for line in lines]
    cleaned = [line for line in cleaned if line]

    # sorted() is stable, so ties stay in first-occurrence order
    return sorted(cleaned, key=len, reverse=True)


def extract_card_name(raw_text: str) -> str:
    """Best-guess card name from OCR text, or "" when no line survives"""
    candidates = rank_candidate_lines(raw_text)
    if not candidates:
        return ""

    name = candidates[0].strip()
    logger.debug(f"Extracted card name {name!r} from {len(candidates)} candidate lines")
    return name
