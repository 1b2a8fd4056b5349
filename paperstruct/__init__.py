"""
PaperStruct - document structure extraction for clinical research papers

Turns raw extracted PDF text into a navigable structure: hierarchical sections,
bounded content-aware chunks for retrieval and citation, and table captions
with multi-page table reconstruction.

Key Features:
- Section detection with numbering, aliases and hierarchy
- Paper-type classification (research, case report, systematic review)
- Adaptive chunking by content type with section-respecting boundaries
- Priority-ranked table caption matching (supplementary, appendix, online, continued)
- Multi-page table grouping and merging with page provenance
- Reproducibility snapshots
"""

# Core API
from .pipeline import DocumentStructurePipeline
from .config import ChunkingConfig, StructureConfig, create_config_template
from .models import (
    Section,
    TextChunk,
    TableCaption,
    TableFragment,
    MultiPageTable,
    MultiPageDetection,
    DocumentStructure,
    SnapshotInfo,
    ContentType,
    TableType,
    PaperType
)
from .patterns import SectionPattern, TableCaptionPattern, PatternError
from .detection.section_detector import detect_sections, detect_paper_type
from .detection.caption_matcher import detect_table_captions
from .chunking.adaptive_chunker import chunk_text
from .tables.multi_page import (
    TableMergeError,
    group_tables_by_number,
    merge_tables,
    detect_multi_page_tables
)
from .snapshot import create_snapshot, load_snapshot, compare_snapshots

# Package metadata
__version__ = "1.0.0"
__description__ = "PaperStruct - sections, chunks and tables from clinical paper text"

__all__ = [
    # Main Pipeline
    "DocumentStructurePipeline",

    # Configuration
    "ChunkingConfig",
    "StructureConfig",
    "create_config_template",

    # Data Models
    "Section",
    "TextChunk",
    "TableCaption",
    "TableFragment",
    "MultiPageTable",
    "MultiPageDetection",
    "DocumentStructure",
    "SnapshotInfo",
    "ContentType",
    "TableType",
    "PaperType",

    # Pattern Catalog
    "SectionPattern",
    "TableCaptionPattern",
    "PatternError",

    # Operations
    "detect_sections",
    "detect_paper_type",
    "detect_table_captions",
    "chunk_text",
    "group_tables_by_number",
    "merge_tables",
    "detect_multi_page_tables",
    "TableMergeError",

    # Snapshot Utilities
    "create_snapshot",
    "load_snapshot",
    "compare_snapshots"
]


def get_version():
    """Get package version."""
    return __version__


def get_info():
    """Get package information."""
    return {
        "version": __version__,
        "description": __description__,
        "features": [
            "Section Detection",
            "Paper-Type Classification",
            "Adaptive Chunking",
            "Table Caption Matching",
            "Multi-Page Table Merging",
            "Reproducibility Snapshots"
        ]
    }
