#!/usr/bin/env python3
"""
config.py

YAML-based configuration for section detection, chunking and caption matching.
"""

import os
import yaml
import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Any
from pathlib import Path

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4  # Fixed token estimate, not a real tokenizer


@dataclass
class ChunkingConfig:
    """Configuration for adaptive chunking"""
    max_chunk_size: int = 1000      # Token budget per chunk
    overlap_size: int = 200         # Overlap in tokens
    respect_sections: bool = True   # Never cross into the next section
    adaptive_sizing: bool = True    # Scale budget by content type
    min_chunk_size: int = 100       # Smaller non-final chunks are dropped
    merge_undersized: bool = False  # Carry undersized spans forward within their section instead
    sample_window: int = 500        # Characters sampled for content type

    @property
    def overlap_chars(self) -> int:
        return self.overlap_size * CHARS_PER_TOKEN


@dataclass
class SectionConfig:
    """Configuration for section detection"""
    paper_type: Optional[str] = None            # Extra vocabulary: case_report, systematic_review, ...
    extra_pattern_files: List[str] = field(default_factory=list)


@dataclass
class CaptionConfig:
    """Configuration for table caption matching"""
    extra_pattern_files: List[str] = field(default_factory=list)


@dataclass
class StructureConfig:
    """Main configuration for the document structure pipeline"""

    chunking: ChunkingConfig = None
    sections: SectionConfig = None
    captions: CaptionConfig = None

    # System configurations
    parallel: bool = False          # Run section and caption passes concurrently
    logging_level: str = "INFO"

    def __post_init__(self):
        # Initialize sub-configs if not provided
        if self.chunking is None:
            self.chunking = ChunkingConfig()
        if self.sections is None:
            self.sections = SectionConfig()
        if self.captions is None:
            self.captions = CaptionConfig()

        env_level = os.getenv("PAPERSTRUCT_LOG_LEVEL")
        if env_level:
            self.logging_level = env_level.upper()

    @classmethod
    def from_yaml(cls, config_path: str) -> 'StructureConfig':
        """Load configuration from YAML file"""
        config_path = Path(config_path)

        if not config_path.exists():
            logger.warning(f"Config file {config_path} not found, using defaults")
            return cls()

        with open(config_path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}

        try:
            config = cls.from_dict(config_dict)
        except TypeError as e:
            raise ValueError(f"Invalid configuration in {config_path}: {e}") from e

        logger.info(f"Loaded configuration from {config_path}")
        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'StructureConfig':
        """Create from dictionary"""
        config = cls()

        if 'chunking' in config_dict:
            config.chunking = ChunkingConfig(**config_dict['chunking'])
        if 'sections' in config_dict:
            config.sections = SectionConfig(**config_dict['sections'])
        if 'captions' in config_dict:
            config.captions = CaptionConfig(**config_dict['captions'])

        # Set top-level attributes
        for key, value in config_dict.items():
            if key in ('chunking', 'sections', 'captions'):
                continue
            if hasattr(config, key):
                setattr(config, key, value)
            else:
                logger.warning(f"Ignoring unknown configuration key: {key}")

        return config

    def save_yaml(self, config_path: str) -> None:
        """Save configuration to YAML file"""
        with open(config_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, indent=2)
        logger.info(f"Configuration saved to {config_path}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return asdict(self)

    def validate(self) -> bool:
        """Validate configuration parameters"""
        valid = True
        chunking = self.chunking

        if chunking.max_chunk_size <= 0:
            logger.error("max_chunk_size must be positive")
            valid = False
        if chunking.overlap_size < 0:
            logger.error("overlap_size must not be negative")
            valid = False
        if chunking.min_chunk_size < 0:
            logger.error("min_chunk_size must not be negative")
            valid = False
        if chunking.sample_window <= 0:
            logger.error("sample_window must be positive")
            valid = False

        if chunking.min_chunk_size > chunking.max_chunk_size:
            logger.warning("min_chunk_size exceeds max_chunk_size; most chunks will be dropped")
        if chunking.overlap_size >= chunking.max_chunk_size:
            logger.warning("overlap_size >= max_chunk_size; chunks will advance one character at a time")

        if self.logging_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            logger.error(f"Invalid logging level: {self.logging_level}")
            valid = False

        return valid

    def update_from_dict(self, updates: Dict[str, Any]) -> None:
        """Update configuration from a dictionary of changes"""
        for key, value in updates.items():
            if not hasattr(self, key):
                continue
            current = getattr(self, key)
            if isinstance(current, (ChunkingConfig, SectionConfig, CaptionConfig)):
                # Update nested config
                for sub_key, sub_value in value.items():
                    if hasattr(current, sub_key):
                        setattr(current, sub_key, sub_value)
            else:
                setattr(self, key, value)


# Default configuration templates
DEFAULT_RESEARCH_CONFIG = {
    "chunking": {
        "max_chunk_size": 1000,
        "overlap_size": 200,
        "min_chunk_size": 100
    },
    "sections": {
        "paper_type": "research"
    }
}

DEFAULT_CASE_REPORT_CONFIG = {
    "chunking": {
        "max_chunk_size": 600,
        "overlap_size": 100,
        "min_chunk_size": 50
    },
    "sections": {
        "paper_type": "case_report"
    }
}

DEFAULT_SYSTEMATIC_REVIEW_CONFIG = {
    "chunking": {
        "max_chunk_size": 1200,
        "overlap_size": 200,
        "min_chunk_size": 100
    },
    "sections": {
        "paper_type": "systematic_review"
    }
}

CONFIG_TEMPLATES = {
    "default": {},
    "research": DEFAULT_RESEARCH_CONFIG,
    "case_report": DEFAULT_CASE_REPORT_CONFIG,
    "systematic_review": DEFAULT_SYSTEMATIC_REVIEW_CONFIG,
}


def create_config_template(config_type: str = "default") -> StructureConfig:
    """Create a configuration template for specific paper types"""
    if config_type not in CONFIG_TEMPLATES:
        raise ValueError(f"Unknown config type: {config_type}. Choose from: {list(CONFIG_TEMPLATES.keys())}")

    config = StructureConfig()
    config.update_from_dict(CONFIG_TEMPLATES[config_type])
    return config
