#!/usr/bin/env python3
"""
multi_page.py

Multi-page table detection and merging. Groups per-page table fragments by
logical table identity, using caption wording ("Table 1 (continued)",
"Table 2 - Continued") to file continuation fragments under the table they
continue, and concatenates rows in page order.
"""

import logging
from collections import OrderedDict
from typing import List, Dict, Optional, Sequence, Tuple, Any

from ..models import TableCaption, TableFragment, MultiPageTable, MultiPageDetection
from ..patterns import CONTINUATION_PATTERNS

logger = logging.getLogger(__name__)


class TableMergeError(ValueError):
    """Raised when a merge is requested on a malformed fragment group."""


def is_continuation_caption(caption: str) -> Tuple[bool, Optional[str]]:
    """
    Check whether a caption marks a continuation.

    Returns:
        (is_continuation, original_table_number)
    """
    for pattern in CONTINUATION_PATTERNS:
        match = pattern.search(caption or '')
        if match:
            return True, match.group(1)
    return False, None


def group_tables_by_number(fragments: Sequence[TableFragment]) -> Dict[str, List[TableFragment]]:
    """
    Group fragments by logical table number.

    Continuation status is re-derived from each fragment's caption; any
    is_continuation flag already on the fragment is ignored. Fragments are
    copied, never mutated.

    Returns:
        Mapping of table number -> fragments, keys in order of first appearance
    """
    grouped: Dict[str, List[TableFragment]] = OrderedDict()

    for fragment in fragments:
        is_continuation, original_number = is_continuation_caption(fragment.caption)

        if is_continuation and original_number:
            key = original_number
            entry = fragment.copy_with(is_continuation=True, original_table_number=original_number)
        else:
            key = fragment.table_number
            entry = fragment.copy_with(is_continuation=False)

        grouped.setdefault(key, []).append(entry)

    return grouped


def merge_tables(fragments: Sequence[TableFragment]) -> TableFragment:
    """
    Merge fragments of one logical table into a single table.

    Args:
        fragments: Fragments of the same table, in any order

    Returns:
        The sole fragment unchanged for a group of one, otherwise a new
        fragment whose rows follow ascending page order

    Raises:
        TableMergeError: If fragments is empty
    """
    if not fragments:
        raise TableMergeError("Cannot merge empty table list")

    if len(fragments) == 1:
        return fragments[0]

    ordered = sorted(fragments, key=lambda f: f.page_number)
    # Identity comes from the main fragment when there is one
    main_table = next((f for f in ordered if not f.is_continuation), ordered[0])

    all_rows: List[List[str]] = []
    pages = set()
    for fragment in ordered:
        all_rows.extend(list(row) for row in fragment.rows)
        pages.update(fragment.page_numbers or [fragment.page_number])

    merged = TableFragment(
        table_number=main_table.table_number,
        page_number=ordered[0].page_number,
        caption=main_table.caption,
        rows=all_rows,
        row_count=sum(f.row_count for f in ordered),
        is_continuation=False,
        original_table_number=None,
        page_numbers=sorted(pages)
    )

    logger.info(f"Merged table {main_table.table_number} from {len(merged.page_numbers)} pages")
    return merged


def analyze_multi_page_tables(fragments: Sequence[TableFragment]) -> MultiPageDetection:
    """
    Detect multi-page tables and report groups that cannot be merged.

    A group qualifies when it has more than one fragment and at least one
    non-continuation (main) fragment. Groups made only of continuations are
    flagged as orphaned and skipped.
    """
    detection = MultiPageDetection()

    for table_number, parts in group_tables_by_number(fragments).items():
        if len(parts) < 2:
            continue

        main_table = next((p for p in parts if not p.is_continuation), None)
        if main_table is None:
            message = f"No main table found for table {table_number}"
            logger.warning(message)
            detection.orphaned_groups.append(table_number)
            detection.warnings.append(message)
            continue

        continuations = [p for p in parts if p is not main_table]
        merged_table = merge_tables(parts)

        detection.tables.append(MultiPageTable(
            main_table=main_table,
            continuations=continuations,
            merged_table=merged_table,
            total_pages=len(merged_table.page_numbers)
        ))
        logger.debug(f"Detected multi-page table {table_number} spanning {len(parts)} fragments")

    logger.info(f"Detected {len(detection.tables)} multi-page tables")
    return detection


def detect_multi_page_tables(fragments: Sequence[TableFragment]) -> List[MultiPageTable]:
    return analyze_multi_page_tables(fragments).tables


def merge_multi_page_tables(fragments: Sequence[TableFragment]) -> List[TableFragment]:
    """
    Merge every group, returning one table per logical table number.

    Groups made only of continuations have no main table to merge into; their
    fragments are passed through unmerged and keep is_continuation=True.
    """
    merged: List[TableFragment] = []
    for table_number, parts in group_tables_by_number(fragments).items():
        if all(p.is_continuation for p in parts):
            logger.debug(f"Keeping {len(parts)} orphaned fragments of table {table_number} unmerged")
            merged.extend(parts)
        else:
            merged.append(merge_tables(parts))

    logger.info(f"Merged {len(fragments)} tables into {len(merged)} "
                f"(removed {len(fragments) - len(merged)} continuations)")
    return merged


def get_multi_page_table_stats(fragments: Sequence[TableFragment]) -> Dict[str, Any]:
    """Get statistics about multi-page tables"""
    grouped = group_tables_by_number(fragments)
    multi_page = detect_multi_page_tables(fragments)
    fragments_in_multi_page = sum(1 + len(m.continuations) for m in multi_page)

    total_rows = sum(f.row_count for f in fragments)

    return {
        "total_tables": len(fragments),
        "logical_tables": len(grouped),
        "single_page_tables": len(fragments) - fragments_in_multi_page,
        "multi_page_tables": len(multi_page),
        "max_pages_spanned": max((m.total_pages for m in multi_page), default=0),
        "avg_rows_per_table": total_rows / len(fragments) if fragments else 0.0,
    }


def fragment_from_caption(caption: TableCaption,
                          page_number: int,
                          rows: Sequence[Sequence[str]]) -> TableFragment:
    """
    Build a fragment keyed by the caption's logical table identity.
    """
    return TableFragment(
        table_number=caption.table_key,
        page_number=page_number,
        caption=caption.full_text,
        rows=[list(row) for row in rows],
        is_continuation=caption.is_continuation,
        original_table_number=caption.original_table_number
    )


def match_tables_with_captions(extracted_tables: Sequence[Dict[str, Any]],
                               captions: Sequence[TableCaption]) -> List[Dict[str, Any]]:
    """
    Pair extracted tables with captions by order of appearance.

    Args:
        extracted_tables: Dicts with at least 'page_number' and 'rows'
        captions: Position-ordered captions

    Returns:
        List of {'table', 'caption', 'confidence'}; confidence is 0.9 for a
        main caption, 0.8 for a continuation caption and 0.5 with no caption
    """
    matches = []
    for i, table in enumerate(extracted_tables):
        caption = captions[i] if i < len(captions) else None

        if caption is None:
            confidence = 0.5
        elif caption.is_continuation:
            confidence = 0.8
        else:
            confidence = 0.9

        matches.append({
            'table': table,
            'caption': caption,
            'confidence': confidence,
        })

    return matches
