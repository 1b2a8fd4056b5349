"""
Core data models for document structure extraction.

This module defines the plain value records produced by the section detector,
adaptive chunker, caption matcher and multi-page table merger. Records carry no
behaviour beyond serialisation helpers so they can be stored, diffed or handed
to a citation layer as-is.
"""

from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Optional, Any, Dict, List


class ContentType(str, Enum):
    TEXT = "text"
    TABLE = "table"
    FIGURE = "figure"
    REFERENCES = "references"
    MIXED = "mixed"


class TableType(str, Enum):
    STANDARD = "standard"
    SUPPLEMENTARY = "supplementary"
    APPENDIX = "appendix"
    ONLINE = "online"
    CONTINUED = "continued"


class PaperType(str, Enum):
    RESEARCH = "research"
    CASE_REPORT = "case_report"
    SYSTEMATIC_REVIEW = "systematic_review"
    META_ANALYSIS = "meta_analysis"
    UNKNOWN = "unknown"


@dataclass
class Section:
    """
    A named structural region of a document.

    Offsets are character positions into the source text; end_index is
    exclusive and equals the start of the following section.
    """
    name: str                              # Normalized canonical label
    original_header: str                   # Header line as it appears in text
    start_index: int                       # Offset of the header line
    end_index: int                         # Start of next section or len(text)
    level: int = 1                         # 1 = main section, 2 = subsection
    section_number: Optional[str] = None   # e.g. "1.2.3" for numbered headers
    parent_section: Optional[str] = None   # Name of enclosing level-1 section

    @property
    def length(self) -> int:
        return self.end_index - self.start_index

    def contains(self, offset: int) -> bool:
        return self.start_index <= offset < self.end_index

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Section':
        return cls(**data)


@dataclass
class TextChunk:
    """
    Bounded, offset-addressed slice of document text sized for retrieval.
    """
    text: str                              # source[start_index:end_index]
    start_index: int                       # Start offset in source text
    end_index: int                         # End offset (exclusive)
    chunk_number: int                      # Sequential, gapless from 0
    token_count: int                       # Estimated tokens (4 chars/token)
    content_type: ContentType = ContentType.TEXT
    section: Optional[str] = None          # Section containing start_index

    def get_citation(self) -> str:
        """
        Generate a short citation string for this chunk.

        Returns:
            Citation string with chunk number, offsets and section if known
        """
        parts = [f"Chunk {self.chunk_number}", f"chars {self.start_index}-{self.end_index}"]

        if self.section:
            parts.append(f"Section: {self.section}")

        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['content_type'] = self.content_type.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TextChunk':
        data = dict(data)
        data['content_type'] = ContentType(data.get('content_type', 'text'))
        return cls(**data)


@dataclass
class TableCaption:
    """
    A detected table caption with its number, type and title.
    """
    full_text: str                         # Matched caption text
    table_number: str                      # e.g. "1", "S1", "A1"
    table_type: TableType                  # Which caption family matched
    title: str                             # Text after the number, may be ""
    position: int                          # Offset of the caption in text
    is_continuation: bool = False
    original_table_number: Optional[str] = None

    @property
    def table_key(self) -> str:
        """
        Logical table identity used to group fragments across pages.

        "Table 1" and "Table S1" both capture number "1", so the key carries
        the family prefix to keep them apart.
        """
        number = self.table_number
        if self.table_type == TableType.SUPPLEMENTARY:
            return f"S{number}"
        if self.table_type == TableType.APPENDIX:
            return number if number[:1].isalpha() else f"A{number}"
        if self.table_type == TableType.ONLINE:
            return f"e{number}"
        if self.table_type == TableType.CONTINUED:
            return self.original_table_number or number
        return number

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['table_type'] = self.table_type.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TableCaption':
        data = dict(data)
        data['table_type'] = TableType(data['table_type'])
        return cls(**data)


@dataclass
class TableFragment:
    """
    One page's worth of an extracted table, already associated with a caption.
    """
    table_number: str                      # Logical table identifier
    page_number: int                       # Page the fragment sits on
    caption: str = ""                      # Caption text seen on this page
    rows: List[List[str]] = field(default_factory=list)
    row_count: Optional[int] = None        # Defaults to len(rows)
    is_continuation: bool = False
    original_table_number: Optional[str] = None
    page_numbers: List[int] = field(default_factory=list)

    def __post_init__(self):
        if self.row_count is None:
            self.row_count = len(self.rows)
        if not self.page_numbers:
            self.page_numbers = [self.page_number]

    def copy_with(self, **changes) -> 'TableFragment':
        """Return a shallow copy with selected fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TableFragment':
        known = {
            'table_number', 'page_number', 'caption', 'rows', 'row_count',
            'is_continuation', 'original_table_number', 'page_numbers'
        }
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class MultiPageTable:
    """
    A logical table reconstructed from a main fragment and its continuations.
    """
    main_table: TableFragment
    continuations: List[TableFragment]
    merged_table: TableFragment
    total_pages: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'main_table': self.main_table.to_dict(),
            'continuations': [c.to_dict() for c in self.continuations],
            'merged_table': self.merged_table.to_dict(),
            'total_pages': self.total_pages,
        }


@dataclass
class MultiPageDetection:
    """
    Result of multi-page detection including data-quality flags.
    """
    tables: List[MultiPageTable] = field(default_factory=list)
    orphaned_groups: List[str] = field(default_factory=list)  # groups with no main fragment
    warnings: List[str] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.orphaned_groups)


@dataclass
class DocumentStructure:
    """
    Everything the pipeline derives from a single document.
    """
    sections: List[Section] = field(default_factory=list)
    paper_type: PaperType = PaperType.UNKNOWN
    chunks: List[TextChunk] = field(default_factory=list)
    captions: List[TableCaption] = field(default_factory=list)
    tables: List[TableFragment] = field(default_factory=list)
    multi_page_tables: List[MultiPageTable] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            'sections': [s.to_dict() for s in self.sections],
            'paper_type': self.paper_type.value,
            'chunks': [c.to_dict() for c in self.chunks],
            'captions': [c.to_dict() for c in self.captions],
            'tables': [t.to_dict() for t in self.tables],
            'multi_page_tables': [m.to_dict() for m in self.multi_page_tables],
            'warnings': list(self.warnings),
        }


@dataclass
class SnapshotInfo:
    """
    Snapshot information for reproducibility.
    """
    timestamp: str                   # ISO format timestamp
    text_hash: str                   # SHA256 of the source text
    config_hash: str                 # SHA256 of the serialised config
    output_hashes: Dict[str, str]    # Output list name -> SHA256 hash
    counts: Dict[str, int]           # Output list name -> number of items
    snapshot_id: str                 # Unique snapshot identifier

    @classmethod
    def create(cls, text_hash: str, config_hash: str,
               output_hashes: Dict[str, str], counts: Dict[str, int]) -> 'SnapshotInfo':
        """
        Create a new snapshot with auto-generated ID and timestamp.

        Args:
            text_hash: SHA256 of the source text
            config_hash: SHA256 of the serialised configuration
            output_hashes: Hash of each serialised output list
            counts: Number of items in each output list

        Returns:
            New SnapshotInfo instance
        """
        import uuid
        from datetime import datetime

        return cls(
            timestamp=datetime.now().isoformat(),
            text_hash=text_hash,
            config_hash=config_hash,
            output_hashes=output_hashes,
            counts=counts,
            snapshot_id=str(uuid.uuid4())
        )
