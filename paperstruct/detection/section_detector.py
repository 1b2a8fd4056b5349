#!/usr/bin/env python3
"""
section_detector.py

Line-based section detection for clinical research papers. Supports numbered
headers (1., 2.1), alternative section names (Study Design vs Methods,
Findings vs Results), subsections and extra vocabularies for case reports and
systematic reviews.
"""

import re
import logging
from typing import List, Dict, Optional, Sequence, Tuple, Any

from ..models import Section, PaperType
from ..patterns import SectionPattern, CLINICAL_PAPER_SECTIONS, get_section_patterns

logger = logging.getLogger(__name__)

SECTION_NUMBER_PATTERN = re.compile(r"^(\d+(?:\.\d+)*)\.?\s+")

# IMRAD order used to sanity-check main sections
EXPECTED_SECTION_ORDER = [
    'Abstract',
    'Introduction',
    'Methods',
    'Results',
    'Discussion',
    'Conclusion',
    'References',
]


def _match_line(line: str, patterns: Sequence[SectionPattern]) -> Optional[SectionPattern]:
    for pattern in patterns:
        if pattern.matches(line):
            return pattern
    return None


def detect_sections(text: str,
                    extra_patterns: Optional[Sequence[SectionPattern]] = None) -> List[Section]:
    """
    Detect sections in text using the pattern catalog.

    Args:
        text: Extracted document text
        extra_patterns: Additional patterns checked after the built-in catalog

    Returns:
        Sections in ascending start order; empty if no header was recognised
    """
    all_patterns = list(CLINICAL_PAPER_SECTIONS)
    if extra_patterns:
        all_patterns.extend(extra_patterns)

    sections: List[Section] = []
    current_index = 0

    for line in text.split('\n'):
        line_start = current_index
        line_end = current_index + len(line)

        pattern = _match_line(line, all_patterns)
        if pattern is not None:
            number_match = SECTION_NUMBER_PATTERN.match(line)
            sections.append(Section(
                name=pattern.normalized_name,
                original_header=line.strip(),
                start_index=line_start,
                end_index=line_end,
                level=pattern.level,
                section_number=number_match.group(1) if number_match else None
            ))

        current_index = line_end + 1  # newline

    # Each section runs until the next header at any level
    for current, following in zip(sections, sections[1:]):
        current.end_index = following.start_index

    if sections:
        sections[-1].end_index = len(text)

    last_main: Optional[str] = None
    for section in sections:
        if section.level == 1:
            last_main = section.name
        else:
            section.parent_section = last_main

    logger.info(f"Detected {len(sections)} sections in document")
    logger.debug(f"Sections: {', '.join(s.name for s in sections)}")

    return sections


def detect_paper_type(sections: Sequence[Section]) -> PaperType:
    """
    Classify the paper from the canonical section names present.

    Case report and systematic review indicators win over the generic
    Methods + Results research heuristic.
    """
    names = {s.name for s in sections}

    if 'Case Presentation' in names or 'Patient History' in names:
        return PaperType.CASE_REPORT

    if 'Search Strategy' in names or 'Selection Criteria' in names:
        return PaperType.SYSTEMATIC_REVIEW

    if 'Quality Assessment' in names and 'Data Extraction' in names:
        return PaperType.META_ANALYSIS

    if 'Methods' in names and 'Results' in names:
        return PaperType.RESEARCH

    return PaperType.UNKNOWN


def get_section_content(text: str, sections: Sequence[Section], section_name: str) -> Optional[str]:
    """Return the text of the first section with the given name, or None"""
    for section in sections:
        if section.name == section_name:
            return text[section.start_index:section.end_index]
    return None


def get_subsections(sections: Sequence[Section], parent_section_name: str) -> List[Section]:
    return [s for s in sections if s.parent_section == parent_section_name]


def find_section_at(sections: Sequence[Section], offset: int) -> Optional[Section]:
    """Return the section whose interval contains offset"""
    for section in sections:
        if section.contains(offset):
            return section
    return None


def get_section_hierarchy(sections: Sequence[Section]) -> List[Dict[str, Any]]:
    """
    Group level-2 sections under their level-1 parents.

    Returns:
        List of {'section': Section, 'subsections': [Section, ...]} in document order
    """
    hierarchy = []
    for main_section in (s for s in sections if s.level == 1):
        subsections = [
            s for s in sections
            if s.level == 2 and s.parent_section == main_section.name
        ]
        hierarchy.append({'section': main_section, 'subsections': subsections})
    return hierarchy


def validate_section_order(sections: Sequence[Section]) -> Tuple[bool, List[str]]:
    """
    Check that recognised main sections follow the IMRAD order.

    Returns:
        (is_valid, issues)
    """
    issues = []
    last_expected_index = -1

    for section in (s for s in sections if s.level == 1):
        if section.name not in EXPECTED_SECTION_ORDER:
            continue
        expected_index = EXPECTED_SECTION_ORDER.index(section.name)
        if expected_index < last_expected_index:
            issues.append(f'Section "{section.name}" appears out of order')
        last_expected_index = expected_index

    return len(issues) == 0, issues


def get_section_stats(sections: Sequence[Section]) -> Dict[str, Any]:
    """Get statistics about detected sections"""
    return {
        "total_sections": len(sections),
        "main_sections": sum(1 for s in sections if s.level == 1),
        "subsections": sum(1 for s in sections if s.level > 1),
        "paper_type": detect_paper_type(sections).value,
        "has_numbered_sections": any(s.section_number is not None for s in sections),
    }


class SectionDetector:
    """
    Section detector bound to a paper-type vocabulary and extra patterns.

    Usage:
        detector = SectionDetector(paper_type="case_report")
        sections = detector.detect(text)
        paper_type = detector.classify(sections)
    """

    def __init__(self,
                 paper_type: Optional[str] = None,
                 extra_patterns: Optional[Sequence[SectionPattern]] = None):
        # Base catalog is always applied by detect_sections; keep only the additions
        combined = get_section_patterns(paper_type, extra_patterns)
        self.extra_patterns = combined[len(CLINICAL_PAPER_SECTIONS):]
        self.paper_type = paper_type

    def detect(self, text: str) -> List[Section]:
        return detect_sections(text, self.extra_patterns)

    def classify(self, sections: Sequence[Section]) -> PaperType:
        return detect_paper_type(sections)
