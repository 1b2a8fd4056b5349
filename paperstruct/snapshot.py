"""
snapshot.py

Reproducibility snapshots for structure extraction results. A snapshot stores
SHA256 hashes of the source text, the configuration and each output list, so
two runs can be compared without keeping the outputs themselves.
"""

import json
import hashlib
from pathlib import Path
from typing import Dict, List, Optional

from .config import StructureConfig
from .models import DocumentStructure, SnapshotInfo

OUTPUT_KEYS = ('sections', 'chunks', 'captions', 'tables', 'multi_page_tables')


def _sha256(payload: str) -> str:
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


def _canonical_json(obj) -> str:
    return json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(',', ':'))


def create_snapshot(structure: DocumentStructure,
                    text: str,
                    config: Optional[StructureConfig] = None) -> SnapshotInfo:
    """
    Create a reproducibility snapshot of an extraction result.

    Args:
        structure: Result of DocumentStructurePipeline.analyze()
        text: Source text the result was derived from
        config: Configuration used for the run

    Returns:
        SnapshotInfo with hashes and counts
    """
    config = config or StructureConfig()
    serialized = structure.to_dict()

    output_hashes = {key: _sha256(_canonical_json(serialized[key])) for key in OUTPUT_KEYS}
    counts = {key: len(serialized[key]) for key in OUTPUT_KEYS}

    config_dict = config.to_dict()
    config_dict.pop('logging_level', None)  # does not affect outputs

    return SnapshotInfo.create(
        text_hash=_sha256(text),
        config_hash=_sha256(_canonical_json(config_dict)),
        output_hashes=output_hashes,
        counts=counts
    )


def save_snapshot(snapshot: SnapshotInfo, snapshot_path: str) -> str:
    """Write a snapshot to a JSON file and return its path"""
    path = Path(snapshot_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    snapshot_dict = {
        "snapshot_id": snapshot.snapshot_id,
        "timestamp": snapshot.timestamp,
        "text_hash": snapshot.text_hash,
        "config_hash": snapshot.config_hash,
        "output_hashes": snapshot.output_hashes,
        "counts": snapshot.counts
    }

    with open(path, 'w') as f:
        json.dump(snapshot_dict, f, indent=2)

    return str(path)


def load_snapshot(snapshot_path: str) -> SnapshotInfo:
    """
    Load a snapshot from file.

    Args:
        snapshot_path: Path to snapshot JSON file

    Returns:
        SnapshotInfo object
    """
    with open(snapshot_path, 'r') as f:
        data = json.load(f)

    return SnapshotInfo(
        timestamp=data["timestamp"],
        text_hash=data["text_hash"],
        config_hash=data["config_hash"],
        output_hashes=data["output_hashes"],
        counts=data["counts"],
        snapshot_id=data["snapshot_id"]
    )


def compare_snapshots(snapshot1: SnapshotInfo, snapshot2: SnapshotInfo) -> Dict:
    """
    Compare two snapshots to check reproducibility.

    Returns:
        Dictionary with 'identical' flag and a list of differences
    """
    differences: List[str] = []

    if snapshot1.text_hash != snapshot2.text_hash:
        differences.append("Source text differs")

    if snapshot1.config_hash != snapshot2.config_hash:
        differences.append("Configuration differs")

    for key in sorted(set(snapshot1.output_hashes) | set(snapshot2.output_hashes)):
        hash1 = snapshot1.output_hashes.get(key)
        hash2 = snapshot2.output_hashes.get(key)
        if hash1 != hash2:
            count1 = snapshot1.counts.get(key)
            count2 = snapshot2.counts.get(key)
            differences.append(f"Output mismatch for {key}: {count1} vs {count2} items")

    return {
        "identical": not differences,
        "differences": differences
    }
