"""
cli.py

Command-line interface for PaperStruct.
Provides commands for section detection, chunking, caption matching,
multi-page table merging, full analysis and reproducibility snapshots.
"""

import argparse
import sys
import json
import logging
from pathlib import Path
from typing import List, Optional

from .config import StructureConfig, create_config_template
from .models import TableFragment
from .pipeline import DocumentStructurePipeline
from .tables.multi_page import analyze_multi_page_tables, merge_multi_page_tables
from .snapshot import create_snapshot, save_snapshot, load_snapshot, compare_snapshots


def read_text(path: str) -> str:
    """Read extracted document text."""
    return Path(path).read_text(encoding='utf-8')


def read_fragments(path: str) -> List[TableFragment]:
    """Read table fragments from a JSON list of objects."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list of table fragments in {path}")

    return [TableFragment.from_dict(item) for item in data]


def build_pipeline(args) -> DocumentStructurePipeline:
    if args.config:
        config = StructureConfig.from_yaml(args.config)
    else:
        config = create_config_template(args.preset)

    if getattr(args, 'parallel', False):
        config.parallel = True

    return DocumentStructurePipeline(config=config, preset=args.preset)


def resolve_log_level(args) -> str:
    """--log-level wins, then logging_level from --config, then the default."""
    if args.log_level:
        return args.log_level.upper()
    if getattr(args, 'config', None):
        return StructureConfig.from_yaml(args.config).logging_level.upper()
    return StructureConfig().logging_level.upper()


def print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def preview(text: str, width: int = 70) -> str:
    text = ' '.join(text.split())
    return text[:width] + "..." if len(text) > width else text


def cmd_sections(args):
    """Detect sections in a text file."""
    pipeline = build_pipeline(args)
    text = read_text(args.text)
    sections = pipeline.detect_sections(text)
    paper_type = pipeline.section_detector.classify(sections)

    if args.json:
        print_json({
            "paper_type": paper_type.value,
            "sections": [s.to_dict() for s in sections]
        })
        return

    print(f"Paper type: {paper_type.value}")
    print(f"Sections: {len(sections)}")
    for section in sections:
        indent = "  " * section.level
        number = f"{section.section_number} " if section.section_number else ""
        print(f"{indent}{number}{section.name}  [{section.start_index}-{section.end_index}]")


def cmd_chunks(args):
    """Chunk a text file."""
    pipeline = build_pipeline(args)
    text = read_text(args.text)
    sections = pipeline.detect_sections(text) if pipeline.config.chunking.respect_sections else None
    chunks = pipeline.chunker.split(text, sections=sections)

    if args.json:
        print_json([c.to_dict() for c in chunks])
        return

    stats = pipeline.chunker.get_stats(chunks)
    print(f"Chunks: {stats['total_chunks']} (avg {stats['avg_tokens_per_chunk']:.0f} tokens)")
    for chunk in chunks:
        print(f"\n[{chunk.chunk_number}] {chunk.content_type.value} | {chunk.get_citation()}")
        print(f"    {preview(chunk.text)}")


def cmd_captions(args):
    """Detect table captions in a text file."""
    pipeline = build_pipeline(args)
    text = read_text(args.text)
    captions = pipeline.detect_captions(text)

    if args.json:
        print_json([c.to_dict() for c in captions])
        return

    print(f"Captions: {len(captions)}")
    for caption in captions:
        suffix = f" (continues {caption.original_table_number})" if caption.is_continuation else ""
        print(f"  @{caption.position} {caption.table_type.value:<13} {caption.table_number:<4} "
              f"{caption.title}{suffix}")


def cmd_tables(args):
    """Group and merge table fragments from a JSON file."""
    fragments = read_fragments(args.fragments)
    detection = analyze_multi_page_tables(fragments)

    if args.json:
        print_json({
            "multi_page_tables": [t.to_dict() for t in detection.tables],
            "merged": [t.to_dict() for t in merge_multi_page_tables(fragments)],
            "orphaned_groups": detection.orphaned_groups,
            "warnings": detection.warnings
        })
        return

    print(f"Fragments: {len(fragments)}")
    print(f"Multi-page tables: {len(detection.tables)}")
    for table in detection.tables:
        merged = table.merged_table
        print(f"  Table {merged.table_number}: {merged.row_count} rows on pages "
              f"{', '.join(str(p) for p in merged.page_numbers)}")
    for warning in detection.warnings:
        print(f"  Warning: {warning}")


def cmd_analyze(args):
    """Run the full pipeline over a text file."""
    pipeline = build_pipeline(args)
    text = read_text(args.text)
    fragments = read_fragments(args.fragments) if args.fragments else None
    structure = pipeline.analyze(text, fragments=fragments)

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump(structure.to_dict(), f, indent=2, ensure_ascii=False)
        print(f"Saved structure to: {args.output}")

    if args.json:
        print_json(structure.to_dict())
        return

    stats = pipeline.get_stats()
    print(f"Paper type: {structure.paper_type.value}")
    print(f"  Sections: {len(structure.sections)}")
    print(f"  Chunks: {len(structure.chunks)}")
    print(f"  Captions: {len(structure.captions)}")
    print(f"  Multi-page tables: {len(structure.multi_page_tables)}")
    print(f"  Time: {stats['time_seconds']:.3f}s")
    for warning in structure.warnings:
        print(f"  Warning: {warning}")


def cmd_snapshot(args):
    """Create a snapshot, or compare against an existing one."""
    pipeline = build_pipeline(args)
    text = read_text(args.text)
    structure = pipeline.analyze(text)
    snapshot = create_snapshot(structure, text, pipeline.config)

    if args.compare:
        comparison = compare_snapshots(load_snapshot(args.compare), snapshot)
        if comparison["identical"]:
            print("Snapshots are identical")
        else:
            print("Snapshots differ:")
            for difference in comparison["differences"]:
                print(f"  - {difference}")
        return 0 if comparison["identical"] else 1

    snapshot_path = save_snapshot(snapshot, args.output)
    print(f"Snapshot saved to: {snapshot_path}")
    print(f"\nContains:")
    print(f"  - Timestamp: {snapshot.timestamp}")
    for key, count in snapshot.counts.items():
        print(f"  - {key}: {count}")
    print(f"  - Snapshot ID: {snapshot.snapshot_id}")
    return 0


def add_text_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--text',
        required=True,
        help='Path to extracted document text (UTF-8)'
    )
    parser.add_argument(
        '--config',
        help='YAML configuration file'
    )
    parser.add_argument(
        '--preset',
        default='default',
        choices=list(DocumentStructurePipeline.PRESETS),
        help='Configuration preset (default: default)'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='paperstruct',
        description='PaperStruct - sections, chunks and tables from clinical paper text',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Detect sections
  paperstruct sections --text paper.txt

  # Chunk with the case report vocabulary
  paperstruct chunks --text paper.txt --preset case_report --json

  # Merge multi-page tables
  paperstruct tables --fragments tables.json

  # Full analysis
  paperstruct analyze --text paper.txt --fragments tables.json --output structure.json

  # Reproducibility check
  paperstruct snapshot --text paper.txt --output snap.json
  paperstruct snapshot --text paper.txt --compare snap.json
        """
    )
    parser.add_argument(
        '--log-level',
        default=None,
        help='Logging level (default: from config, INFO)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    sections_parser = subparsers.add_parser('sections', help='Detect document sections')
    add_text_arguments(sections_parser)
    sections_parser.add_argument('--json', action='store_true', help='Print JSON output')

    chunks_parser = subparsers.add_parser('chunks', help='Split text into adaptive chunks')
    add_text_arguments(chunks_parser)
    chunks_parser.add_argument('--json', action='store_true', help='Print JSON output')

    captions_parser = subparsers.add_parser('captions', help='Detect table captions')
    add_text_arguments(captions_parser)
    captions_parser.add_argument('--json', action='store_true', help='Print JSON output')

    tables_parser = subparsers.add_parser('tables', help='Merge multi-page table fragments')
    tables_parser.add_argument(
        '--fragments',
        required=True,
        help='JSON file with a list of table fragments'
    )
    tables_parser.add_argument('--json', action='store_true', help='Print JSON output')

    analyze_parser = subparsers.add_parser('analyze', help='Run the full structure pipeline')
    add_text_arguments(analyze_parser)
    analyze_parser.add_argument('--fragments', help='JSON file with table fragments')
    analyze_parser.add_argument('--output', help='Write the structure as JSON to this file')
    analyze_parser.add_argument('--parallel', action='store_true',
                                help='Run section and caption detection concurrently')
    analyze_parser.add_argument('--json', action='store_true', help='Print JSON output')

    snapshot_parser = subparsers.add_parser('snapshot', help='Create or compare a reproducibility snapshot')
    add_text_arguments(snapshot_parser)
    snapshot_group = snapshot_parser.add_mutually_exclusive_group(required=True)
    snapshot_group.add_argument('--output', help='Snapshot file to write')
    snapshot_group.add_argument('--compare', help='Existing snapshot file to compare against')

    return parser


COMMANDS = {
    'sections': cmd_sections,
    'chunks': cmd_chunks,
    'captions': cmd_captions,
    'tables': cmd_tables,
    'analyze': cmd_analyze,
    'snapshot': cmd_snapshot,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=resolve_log_level(args),
        format='%(levelname)s: %(message)s'
    )

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    result = command(args)
    return result if isinstance(result, int) else 0


if __name__ == '__main__':
    sys.exit(main())
