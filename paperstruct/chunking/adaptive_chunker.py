#!/usr/bin/env python3
"""
adaptive_chunker.py

Adaptive, section-aware text chunking for clinical research papers. Chunk size
scales with the detected content type (tables and figures get larger budgets,
reference lists smaller ones), boundaries snap to sentence or paragraph breaks,
and chunks never cross into the next detected section.

Token counts use a fixed 4-characters-per-token estimate so chunk boundaries
are reproducible regardless of which tokenizer a consumer uses.
"""

import math
import re
import logging
from collections import Counter
from typing import List, Dict, Optional, Sequence, Any

import numpy as np

from ..config import ChunkingConfig, CHARS_PER_TOKEN
from ..models import Section, TextChunk, ContentType
from ..detection.section_detector import detect_sections, find_section_at

logger = logging.getLogger(__name__)

TABLE_PROBE = re.compile(r"Table\s+\d+|^\s*\|.*\|", re.IGNORECASE)
FIGURE_PROBE = re.compile(r"Figure\s+\d+|Fig\.\s+\d+", re.IGNORECASE)
REFERENCES_PROBE = re.compile(r"^\s*\d+\.\s+[A-Z]", re.MULTILINE)

# (multiplier, cap in tokens) per content type when adaptive sizing is on
ADAPTIVE_SIZING = {
    ContentType.TABLE: (1.5, 1500),
    ContentType.FIGURE: (1.3, 1300),
    ContentType.REFERENCES: (0.8, 800),
}


def estimate_token_count(text: str) -> int:
    """Estimate tokens as ceil(len / 4)"""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def detect_content_type(text: str) -> ContentType:
    """Classify a text sample with lightweight keyword probes"""
    has_table = TABLE_PROBE.search(text) is not None
    has_figure = FIGURE_PROBE.search(text) is not None

    if has_table and has_figure:
        return ContentType.MIXED
    if has_table:
        return ContentType.TABLE
    if has_figure:
        return ContentType.FIGURE
    if REFERENCES_PROBE.search(text):
        return ContentType.REFERENCES
    return ContentType.TEXT


def get_adaptive_chunk_size(content_type: ContentType, config: ChunkingConfig) -> float:
    """Target chunk size in tokens for a content type"""
    if not config.adaptive_sizing or content_type not in ADAPTIVE_SIZING:
        return config.max_chunk_size

    multiplier, cap = ADAPTIVE_SIZING[content_type]
    return min(config.max_chunk_size * multiplier, cap)


def _next_section_start(sections: Sequence[Section], offset: int) -> Optional[int]:
    for section in sections:
        if section.start_index > offset:
            return section.start_index
    return None


def _snap_to_boundary(text: str, start: int, end: int, target_chars: float) -> int:
    """
    Move end back to a sentence or paragraph break in the back half of the window.
    """
    threshold = start + target_chars * 0.5

    sentence_end = text.rfind('.', 0, end)
    if sentence_end > threshold:
        return sentence_end + 1

    paragraph_end = text.rfind('\n\n', 0, end)
    if paragraph_end > threshold:
        return paragraph_end + 2

    return end


def chunk_text(text: str,
               config: Optional[ChunkingConfig] = None,
               sections: Optional[Sequence[Section]] = None) -> List[TextChunk]:
    """
    Split text into bounded chunks with adaptive sizing and section awareness.

    Args:
        text: Extracted document text
        config: Chunking configuration (defaults to ChunkingConfig())
        sections: Section list used as boundary hints; detected from text when
            omitted and respect_sections is enabled

    Returns:
        Chunks in order, numbered from 0
    """
    config = config or ChunkingConfig()
    chunks: List[TextChunk] = []

    if not text:
        return chunks

    if config.respect_sections:
        if sections is None:
            sections = detect_sections(text)
    else:
        sections = []

    text_length = len(text)
    overlap_chars = config.overlap_chars
    current_index = 0
    carried_start: Optional[int] = None  # start of an undersized span being merged forward
    dropped = 0

    while current_index < text_length:
        current_section = find_section_at(sections, current_index)

        sample = text[current_index:current_index + config.sample_window]
        content_type = detect_content_type(sample)

        target_chunk_size = get_adaptive_chunk_size(content_type, config)
        target_chars = target_chunk_size * CHARS_PER_TOKEN

        end_index = min(current_index + int(target_chars), text_length)

        # Don't run into the next section
        section_boundary = None
        if config.respect_sections and current_section is not None:
            next_start = _next_section_start(sections, current_index)
            if next_start is not None and next_start < end_index:
                end_index = section_boundary = next_start

        if end_index < text_length:
            end_index = _snap_to_boundary(text, current_index, end_index, target_chars)

        if carried_start is not None:
            start_index = carried_start
            chunk_section = find_section_at(sections, start_index)
        else:
            start_index = current_index
            chunk_section = current_section
        chunk_body = text[start_index:end_index]
        token_count = estimate_token_count(chunk_body)

        # A carried span may grow up to the section start but never across it
        stops_at_section = config.merge_undersized and end_index == section_boundary

        if token_count >= config.min_chunk_size or end_index == text_length or stops_at_section:
            chunks.append(TextChunk(
                text=chunk_body,
                start_index=start_index,
                end_index=end_index,
                chunk_number=len(chunks),
                token_count=token_count,
                content_type=content_type,
                section=chunk_section.name if chunk_section else None
            ))
            carried_start = None
        elif config.merge_undersized:
            if carried_start is None:
                carried_start = current_index
        else:
            dropped += 1
            logger.debug(f"Dropping chunk at {current_index}-{end_index} with {token_count} tokens (too small)")

        if end_index == text_length:
            break

        # Step back by the overlap but always make progress; overlap never
        # reaches back across a section boundary
        if end_index == section_boundary:
            current_index = end_index
        else:
            current_index = max(current_index + 1, end_index - overlap_chars)

    logger.info(f"Created {len(chunks)} adaptive chunks from {text_length} characters")
    if dropped:
        logger.info(f"Dropped {dropped} chunks below {config.min_chunk_size} tokens")
    logger.debug(f"Content types: {', '.join(c.content_type.value for c in chunks)}")

    return chunks


def merge_overlapping_chunks(chunks: Sequence[TextChunk]) -> str:
    """
    Reassemble text from possibly overlapping chunks.

    Overlapping prefixes are skipped so each character is emitted once.
    """
    if not chunks:
        return ''

    ordered = sorted(chunks, key=lambda c: c.start_index)
    merged = ordered[0].text
    last_end = ordered[0].end_index

    for chunk in ordered[1:]:
        if chunk.end_index <= last_end:
            continue
        if chunk.start_index < last_end:
            merged += chunk.text[last_end - chunk.start_index:]
        else:
            merged += chunk.text
        last_end = chunk.end_index

    return merged


def get_chunks_for_section(chunks: Sequence[TextChunk], section_name: str) -> List[TextChunk]:
    return [c for c in chunks if c.section == section_name]


def get_chunking_stats(chunks: Sequence[TextChunk]) -> Dict[str, Any]:
    """Get statistics about the chunking results"""
    if not chunks:
        return {
            "total_chunks": 0,
            "avg_tokens_per_chunk": 0.0,
            "content_type_distribution": {},
            "section_distribution": {},
        }

    token_counts = np.array([c.token_count for c in chunks])

    return {
        "total_chunks": len(chunks),
        "avg_tokens_per_chunk": float(np.mean(token_counts)),
        "token_stats": {
            "total": int(token_counts.sum()),
            "min": int(token_counts.min()),
            "max": int(token_counts.max()),
            "median": float(np.median(token_counts)),
        },
        "content_type_distribution": dict(Counter(c.content_type.value for c in chunks)),
        "section_distribution": dict(Counter(c.section for c in chunks if c.section)),
    }


class AdaptiveChunker:
    """
    Chunker bound to a configuration.

    Usage:
        chunker = AdaptiveChunker(ChunkingConfig(max_chunk_size=500))
        chunks = chunker.split(text, sections=sections)
    """

    def __init__(self, config: Optional[ChunkingConfig] = None):
        self.config = config or ChunkingConfig()

    def split(self, text: str, sections: Optional[Sequence[Section]] = None) -> List[TextChunk]:
        return chunk_text(text, self.config, sections)

    def get_stats(self, chunks: Sequence[TextChunk]) -> Dict[str, Any]:
        stats = get_chunking_stats(chunks)
        stats["config"] = {
            "max_chunk_size": self.config.max_chunk_size,
            "overlap_size": self.config.overlap_size,
            "min_chunk_size": self.config.min_chunk_size,
            "adaptive_sizing": self.config.adaptive_sizing,
            "respect_sections": self.config.respect_sections,
        }
        return stats
