#!/usr/bin/env python3
"""
patterns.py

Pattern catalog for clinical research papers: section headers, table caption
forms and table continuation markers. Catalogs are tuples of frozen dataclasses
so they can be shared across threads; extra vocabularies are passed in at call
time rather than registered globally.
"""

import re
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Pattern, Iterable

import yaml

from .models import TableType

logger = logging.getLogger(__name__)


class PatternError(ValueError):
    """Raised when a user-supplied pattern definition is invalid."""


@dataclass(frozen=True)
class SectionPattern:
    """Section header pattern with its canonical label and hierarchy level"""
    pattern: Pattern
    normalized_name: str
    aliases: Tuple[str, ...] = field(default_factory=tuple)
    level: int = 1

    def matches(self, line: str) -> bool:
        return self.pattern.search(line) is not None


@dataclass(frozen=True)
class TableCaptionPattern:
    """Caption pattern; higher priority patterns claim positions first"""
    pattern: Pattern
    table_type: TableType
    priority: int


def _section(regex: str, name: str, aliases: Sequence[str], level: int) -> SectionPattern:
    return SectionPattern(
        pattern=re.compile(regex, re.IGNORECASE | re.MULTILINE),
        normalized_name=name,
        aliases=tuple(aliases),
        level=level
    )


# Optional title tail shared by every caption form: "Table 1: Title" / "Table 1. Title"
_TITLE_TAIL = r"(?:\s*[:.]\s*(.+))?"


def _caption(regex: str, table_type: TableType, priority: int) -> TableCaptionPattern:
    return TableCaptionPattern(
        pattern=re.compile(regex + _TITLE_TAIL, re.IGNORECASE),
        table_type=table_type,
        priority=priority
    )


# Main sections first, then common subsections. Order is the tie-break: the
# first pattern that matches a line names it.
CLINICAL_PAPER_SECTIONS: Tuple[SectionPattern, ...] = (
    _section(r"^(?:\d+\.?\s*)?Abstract\s*$",
             'Abstract', ['Summary', 'Synopsis'], 1),
    _section(r"^(?:\d+\.?\s*)?(Introduction|Background)\s*$",
             'Introduction', ['Background', 'Rationale'], 1),
    _section(r"^(?:\d+\.?\s*)?(Methods?|Materials?\s+and\s+Methods?|Study\s+Design|Methodology|Experimental\s+Design)\s*$",
             'Methods', ['Materials and Methods', 'Study Design', 'Methodology',
                         'Experimental Design', 'Experimental Procedures'], 1),
    _section(r"^(?:\d+\.?\s*)?(Results?|Findings?|Observations?)\s*$",
             'Results', ['Findings', 'Observations', 'Data'], 1),
    _section(r"^(?:\d+\.?\s*)?(Discussion|Clinical\s+Implications?|Interpretation)\s*$",
             'Discussion', ['Clinical Implications', 'Interpretation', 'Analysis'], 1),
    _section(r"^(?:\d+\.?\s*)?(Conclusions?|Summary|Final\s+Remarks?)\s*$",
             'Conclusion', ['Summary', 'Final Remarks', 'Concluding Remarks'], 1),
    _section(r"^(?:\d+\.?\s*)?References?\s*$",
             'References', ['Bibliography', 'Citations', 'Literature Cited'], 1),

    # Subsections allow dotted numbers such as "2.1"
    _section(r"^(?:\d+\.?\d*\.?\s*)?(Patient\s+Selection|Study\s+Population|Participants?)\s*$",
             'Patient Selection', ['Study Population', 'Participants', 'Subjects', 'Cohort'], 2),
    _section(r"^(?:\d+\.?\d*\.?\s*)?(Statistical\s+Analysis|Data\s+Analysis|Statistics?)\s*$",
             'Statistical Analysis', ['Data Analysis', 'Statistics', 'Statistical Methods'], 2),
    _section(r"^(?:\d+\.?\d*\.?\s*)?(Intervention|Treatment|Procedure)\s*$",
             'Intervention', ['Treatment', 'Procedure', 'Protocol'], 2),
    _section(r"^(?:\d+\.?\d*\.?\s*)?(Outcome\s+Measures?|Endpoints?|Primary\s+Outcome)\s*$",
             'Outcome Measures', ['Endpoints', 'Primary Outcome', 'Secondary Outcomes'], 2),
)

CASE_REPORT_SECTIONS: Tuple[SectionPattern, ...] = (
    _section(r"^(?:\d+\.?\s*)?Case\s+Presentation\s*$",
             'Case Presentation', ['Case Description', 'Clinical Presentation'], 1),
    _section(r"^(?:\d+\.?\s*)?Patient\s+History\s*$",
             'Patient History', ['Medical History', 'Clinical History'], 2),
)

SYSTEMATIC_REVIEW_SECTIONS: Tuple[SectionPattern, ...] = (
    _section(r"^(?:\d+\.?\s*)?Search\s+Strategy\s*$",
             'Search Strategy', ['Literature Search', 'Search Methods'], 2),
    _section(r"^(?:\d+\.?\s*)?(Inclusion|Exclusion)\s+Criteria\s*$",
             'Selection Criteria', ['Inclusion Criteria', 'Exclusion Criteria', 'Eligibility Criteria'], 2),
    _section(r"^(?:\d+\.?\s*)?Data\s+Extraction\s*$",
             'Data Extraction', ['Data Collection', 'Information Extraction'], 2),
    _section(r"^(?:\d+\.?\s*)?Quality\s+Assessment\s*$",
             'Quality Assessment', ['Risk of Bias', 'Study Quality', 'Methodological Quality'], 2),
)

# Extra vocabularies per paper type
PAPER_TYPE_PATTERNS = {
    'research': (),
    'case_report': CASE_REPORT_SECTIONS,
    'systematic_review': SYSTEMATIC_REVIEW_SECTIONS,
    'meta_analysis': SYSTEMATIC_REVIEW_SECTIONS,
}

TABLE_CAPTION_PATTERNS: Tuple[TableCaptionPattern, ...] = (
    # Multi-page continuations
    _caption(r"\bTable\s+(\d+)\s+\(continued\)", TableType.CONTINUED, 100),
    _caption(r"\bTable\s+([A-Z]?\d+)\s+\(cont(?:'d|inued)?\)", TableType.CONTINUED, 99),

    # Supplementary tables
    _caption(r"Supplementary\s+Table\s+(\d+)", TableType.SUPPLEMENTARY, 90),
    _caption(r"Table\s+S(\d+)", TableType.SUPPLEMENTARY, 89),
    _caption(r"Suppl\.\s+Table\s+(\d+)", TableType.SUPPLEMENTARY, 88),
    _caption(r"\bS\s+Table\s+(\d+)", TableType.SUPPLEMENTARY, 87),

    # Appendix tables
    _caption(r"Appendix\s+Table\s+([A-Z]?\d+)", TableType.APPENDIX, 80),
    _caption(r"Table\s+A(\d+)", TableType.APPENDIX, 79),
    _caption(r"Table\s+([A-Z]\d+)", TableType.APPENDIX, 78),

    # Online-only tables
    _caption(r"eTable\s+(\d+)", TableType.ONLINE, 70),
    _caption(r"Online\s+Table\s+(\d+)", TableType.ONLINE, 69),

    # Standard tables last to avoid stealing the forms above
    _caption(r"Table\s+(\d+)", TableType.STANDARD, 50),
    _caption(r"Tab\.\s+(\d+)", TableType.STANDARD, 49),
)

# Smaller set used by the merger to re-derive continuation status from a caption
CONTINUATION_PATTERNS: Tuple[Pattern, ...] = (
    re.compile(r"\bTable\s+(\d+)\s+\(continued\)", re.IGNORECASE),
    re.compile(r"\bTable\s+(\d+)\s+\(cont(?:'d|inued)?\)", re.IGNORECASE),
    re.compile(r"\bTable\s+(\d+)\s*-\s*Continued", re.IGNORECASE),
    re.compile(r"\bTable\s+([A-Z]?\d+)\s+\(continued\)", re.IGNORECASE),
    re.compile(r"\bTable\s+([A-Z]?\d+)\s+\(cont(?:'d|inued)?\)", re.IGNORECASE),
)


def get_section_patterns(paper_type: Optional[str] = None,
                         extra: Optional[Iterable[SectionPattern]] = None) -> List[SectionPattern]:
    """
    Combine the base catalog with paper-type and caller-supplied vocabularies.

    Args:
        paper_type: Optional key of PAPER_TYPE_PATTERNS
        extra: Additional patterns appended after the built-in ones

    Returns:
        Ordered list of section patterns (base first)
    """
    patterns = list(CLINICAL_PAPER_SECTIONS)

    if paper_type:
        if paper_type not in PAPER_TYPE_PATTERNS:
            raise ValueError(f"Unknown paper type: {paper_type}. Choose from: {list(PAPER_TYPE_PATTERNS.keys())}")
        patterns.extend(PAPER_TYPE_PATTERNS[paper_type])

    if extra:
        patterns.extend(extra)

    return patterns


def sort_caption_patterns(patterns: Sequence[TableCaptionPattern]) -> List[TableCaptionPattern]:
    """Order caption patterns by descending priority, declaration order on ties"""
    indexed = list(enumerate(patterns))
    indexed.sort(key=lambda item: (-item[1].priority, item[0]))
    return [p for _, p in indexed]


def _compile(regex: str, source: str) -> Pattern:
    try:
        return re.compile(regex, re.IGNORECASE | re.MULTILINE)
    except re.error as e:
        raise PatternError(f"Invalid regular expression in {source}: {regex!r} ({e})") from e


def _load_yaml_list(path: str, key: str) -> List[dict]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Pattern file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    entries = data.get(key, []) if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise PatternError(f"Expected a list under '{key}' in {path}")
    return entries


def load_section_patterns(path: str) -> List[SectionPattern]:
    """
    Load extra section patterns from a YAML file.

    Expected layout::

        sections:
          - pattern: "^(?:\\d+\\.?\\s*)?Limitations\\s*$"
            name: Limitations
            aliases: [Study Limitations]
            level: 2
    """
    patterns = []
    for i, entry in enumerate(_load_yaml_list(path, 'sections')):
        if not isinstance(entry, dict) or 'pattern' not in entry or 'name' not in entry:
            raise PatternError(f"Section entry {i} in {path} needs 'pattern' and 'name'")

        level = int(entry.get('level', 1))
        if level < 1:
            raise PatternError(f"Section entry {i} in {path} has level {level}, must be >= 1")

        patterns.append(SectionPattern(
            pattern=_compile(entry['pattern'], str(path)),
            normalized_name=entry['name'],
            aliases=tuple(entry.get('aliases', [])),
            level=level
        ))

    logger.info(f"Loaded {len(patterns)} section patterns from {path}")
    return patterns


def load_caption_patterns(path: str) -> List[TableCaptionPattern]:
    """
    Load extra caption patterns from a YAML file.

    Each entry needs ``pattern``, ``type`` (a TableType value) and ``priority``.
    The optional title tail is appended automatically.
    """
    patterns = []
    for i, entry in enumerate(_load_yaml_list(path, 'captions')):
        if not isinstance(entry, dict) or not {'pattern', 'type', 'priority'} <= set(entry):
            raise PatternError(f"Caption entry {i} in {path} needs 'pattern', 'type' and 'priority'")

        try:
            table_type = TableType(entry['type'])
        except ValueError as e:
            raise PatternError(f"Caption entry {i} in {path} has unknown type {entry['type']!r}") from e

        compiled = _compile(entry['pattern'] + _TITLE_TAIL, str(path))
        if compiled.groups < 2:
            raise PatternError(f"Caption entry {i} in {path} must capture the table number")

        patterns.append(TableCaptionPattern(
            pattern=compiled,
            table_type=table_type,
            priority=int(entry['priority'])
        ))

    logger.info(f"Loaded {len(patterns)} caption patterns from {path}")
    return patterns
