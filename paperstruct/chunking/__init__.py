"""
Chunking Package for PaperStruct

Content-aware, section-respecting text chunking with configurable overlap.
"""

from .adaptive_chunker import AdaptiveChunker, chunk_text, estimate_token_count

__all__ = [
    'AdaptiveChunker',
    'chunk_text',
    'estimate_token_count'
]
