#!/usr/bin/env python3
"""
caption_matcher.py

Table caption detection for standard, supplementary (Table S1), appendix
(Table A1), online-only (eTable 1) and continued (Table 1 (continued)) forms.
"""

import re
import logging
from collections import Counter
from typing import List, Dict, Optional, Sequence, Tuple, Any

from ..models import TableCaption, TableType
from ..patterns import TableCaptionPattern, TABLE_CAPTION_PATTERNS, sort_caption_patterns

logger = logging.getLogger(__name__)

CAPTION_NUMBER_PATTERN = re.compile(r"Table\s+[A-Z]?\d+", re.IGNORECASE)
CAPTION_TITLE_PATTERN = re.compile(r"[:.]\s*.+")
MIN_CAPTION_LENGTH = 10
MAX_CAPTION_LENGTH = 500


def _is_claimed(position: int, claimed: List[Tuple[int, int]]) -> bool:
    for start, end in claimed:
        if start <= position < end:
            return True
    return False


def detect_table_captions(text: str,
                          patterns: Optional[Sequence[TableCaptionPattern]] = None) -> List[TableCaption]:
    """
    Detect all table captions in text.

    Patterns are scanned in descending priority. Each match claims the
    positions of its caption head (the text up to the end of the table
    number); a later match starting on a claimed position is discarded, so
    "Table S1" is owned by the supplementary form and never re-reported as an
    appendix or standard table. Titles claim nothing, so a caption that
    follows another on the same line is still found.

    Args:
        text: Extracted document text
        patterns: Caption catalog to use (defaults to TABLE_CAPTION_PATTERNS)

    Returns:
        Captions ordered by position
    """
    captions: List[TableCaption] = []
    claimed: List[Tuple[int, int]] = []

    for caption_pattern in sort_caption_patterns(patterns or TABLE_CAPTION_PATTERNS):
        regex = caption_pattern.pattern
        table_type = caption_pattern.table_type

        for match in regex.finditer(text):
            position = match.start()
            if _is_claimed(position, claimed):
                continue

            table_number = match.group(1)
            title = (match.group(regex.groups) or '').strip() if regex.groups >= 2 else ''
            is_continuation = table_type == TableType.CONTINUED

            captions.append(TableCaption(
                full_text=match.group(0),
                table_number=table_number,
                table_type=table_type,
                title=title,
                position=position,
                is_continuation=is_continuation,
                original_table_number=table_number if is_continuation else None
            ))
            claimed.append((position, max(match.end(1), position + 1)))

    captions.sort(key=lambda c: c.position)

    logger.info(f"Detected {len(captions)} table captions")
    logger.debug(f"Types: {', '.join(f'{c.table_type.value}:{c.table_number}' for c in captions)}")

    return captions


def find_table_caption(captions: Sequence[TableCaption],
                       table_number: str,
                       table_type: Optional[TableType] = None) -> Optional[TableCaption]:
    """Find the first caption with the given number (and type, if given)"""
    for caption in captions:
        if caption.table_number == table_number and (table_type is None or caption.table_type == table_type):
            return caption
    return None


def get_table_continuations(captions: Sequence[TableCaption], table_number: str) -> List[TableCaption]:
    return [
        c for c in captions
        if c.is_continuation and c.original_table_number == table_number
    ]


def merge_multi_page_captions(captions: Sequence[TableCaption]) -> List[TableCaption]:
    """
    Collapse continuation captions into their main caption.

    Main captions that have continuations get a "(N continuation(s))" suffix on
    their title; continuation captions are dropped from the result.
    """
    continuation_counts = Counter(c.table_key for c in captions if c.is_continuation)

    merged = []
    for caption in captions:
        if caption.is_continuation:
            continue

        count = continuation_counts.get(caption.table_key, 0)
        if count:
            suffix = f" ({count} continuation{'s' if count > 1 else ''})"
            merged.append(TableCaption(
                full_text=caption.full_text,
                table_number=caption.table_number,
                table_type=caption.table_type,
                title=caption.title + suffix,
                position=caption.position,
                is_continuation=False,
                original_table_number=caption.original_table_number
            ))
        else:
            merged.append(caption)

    return merged


def extract_table_content(text: str,
                          caption: TableCaption,
                          next_caption: Optional[TableCaption] = None) -> str:
    """Text between the end of a caption and the next caption (or end of text)"""
    start_index = caption.position + len(caption.full_text)
    end_index = next_caption.position if next_caption else len(text)
    return text[start_index:end_index].strip()


def validate_table_caption(caption: str) -> Tuple[bool, List[str]]:
    """
    Validate table caption format.

    Returns:
        (is_valid, issues)
    """
    issues = []

    if not CAPTION_NUMBER_PATTERN.search(caption):
        issues.append('Caption does not contain a valid table number')

    if not CAPTION_TITLE_PATTERN.search(caption):
        issues.append('Caption does not contain a title after the table number')

    if len(caption) < MIN_CAPTION_LENGTH:
        issues.append(f'Caption is too short (minimum {MIN_CAPTION_LENGTH} characters)')

    if len(caption) > MAX_CAPTION_LENGTH:
        issues.append(f'Caption is too long (maximum {MAX_CAPTION_LENGTH} characters)')

    return len(issues) == 0, issues


def normalize_table_number(table_number: str) -> str:
    """Strip whitespace and leading zeros for comparison"""
    return table_number.strip().lstrip('0')


def get_table_caption_stats(captions: Sequence[TableCaption]) -> Dict[str, Any]:
    """Get table caption statistics"""
    by_type = Counter(c.table_type.value for c in captions)
    continuation_count = sum(1 for c in captions if c.is_continuation)

    return {
        "total": len(captions),
        "by_type": dict(by_type),
        "has_continuations": continuation_count > 0,
        "continuation_count": continuation_count,
    }


def format_table_caption_for_display(caption: TableCaption) -> str:
    """Markdown rendering used by downstream viewers"""
    formatted = f"**{caption.full_text}**"

    if caption.title:
        formatted += f"\n{caption.title}"

    if caption.is_continuation:
        formatted += "\n*(Continuation of previous table)*"

    return formatted


class TableCaptionMatcher:
    """
    Caption matcher with an optional extended catalog.

    Extra patterns are merged with the built-in catalog and ordered by their
    declared priority.
    """

    def __init__(self, extra_patterns: Optional[Sequence[TableCaptionPattern]] = None):
        self.patterns = sort_caption_patterns(list(TABLE_CAPTION_PATTERNS) + list(extra_patterns or []))

    def detect(self, text: str) -> List[TableCaption]:
        return detect_table_captions(text, self.patterns)
