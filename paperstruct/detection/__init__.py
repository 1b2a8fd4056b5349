"""
Detection Package for PaperStruct

This package provides pattern-based structure detection including:
- Section headers with hierarchy and numbering
- Paper-type classification from detected sections
- Table captions with type disambiguation
"""

from .section_detector import SectionDetector, detect_sections, detect_paper_type
from .caption_matcher import TableCaptionMatcher, detect_table_captions

__all__ = [
    'SectionDetector',
    'detect_sections',
    'detect_paper_type',
    'TableCaptionMatcher',
    'detect_table_captions'
]
