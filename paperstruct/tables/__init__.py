"""
Tables Package for PaperStruct

Grouping and merging of table fragments that span multiple pages.
"""

from .multi_page import (
    TableMergeError,
    group_tables_by_number,
    merge_tables,
    detect_multi_page_tables,
    analyze_multi_page_tables,
    merge_multi_page_tables
)

__all__ = [
    'TableMergeError',
    'group_tables_by_number',
    'merge_tables',
    'detect_multi_page_tables',
    'analyze_multi_page_tables',
    'merge_multi_page_tables'
]
