import pytest

from paperstruct import DocumentStructurePipeline, StructureConfig, PaperType, TableFragment
from paperstruct.config import create_config_template


def _config(**chunking):
    config = create_config_template("default")
    config.chunking.min_chunk_size = 0
    for key, value in chunking.items():
        setattr(config.chunking, key, value)
    return config


def test_analyze_sample_paper(sample_paper, split_table):
    pipeline = DocumentStructurePipeline(config=_config())

    structure = pipeline.analyze(sample_paper, fragments=split_table)

    assert structure.paper_type == PaperType.RESEARCH
    assert len(structure.sections) == 7
    assert [c.section for c in structure.chunks] == [s.name for s in structure.sections]
    assert [c.table_type.value for c in structure.captions] == ['standard', 'continued']
    assert len(structure.multi_page_tables) == 1
    assert structure.multi_page_tables[0].merged_table.row_count == 8
    assert [t.table_number for t in structure.tables] == ['1', '2']
    assert structure.warnings == []


def test_analyze_without_fragments(sample_paper):
    structure = DocumentStructurePipeline(config=_config()).analyze(sample_paper)

    assert structure.tables == []
    assert structure.multi_page_tables == []


def test_parallel_matches_sequential(sample_paper):
    sequential = DocumentStructurePipeline(config=_config()).analyze(sample_paper)

    config = _config()
    config.parallel = True
    parallel = DocumentStructurePipeline(config=config).analyze(sample_paper)

    assert parallel.to_dict() == sequential.to_dict()


def test_orphaned_groups_become_warnings(sample_paper):
    fragments = [
        TableFragment(table_number="5", page_number=6, caption="Table 5 (continued)"),
        TableFragment(table_number="5", page_number=7, caption="Table 5 (continued)"),
    ]

    structure = DocumentStructurePipeline(config=_config()).analyze(sample_paper, fragments=fragments)

    assert len(structure.warnings) == 1
    assert structure.multi_page_tables == []


def test_case_report_preset(case_report):
    pipeline = DocumentStructurePipeline(preset="case_report")

    structure = pipeline.analyze(case_report)

    assert structure.paper_type == PaperType.CASE_REPORT
    assert 'Case Presentation' in [s.name for s in structure.sections]


def test_unknown_preset():
    with pytest.raises(ValueError):
        DocumentStructurePipeline(preset="editorial")


def test_invalid_config():
    config = StructureConfig()
    config.chunking.max_chunk_size = -5

    with pytest.raises(ValueError):
        DocumentStructurePipeline(config=config)


def test_extra_pattern_files(tmp_path):
    sections_file = tmp_path / "sections.yaml"
    sections_file.write_text("sections:\n  - pattern: '^Limitations\\s*$'\n    name: Limitations\n    level: 2\n")
    captions_file = tmp_path / "captions.yaml"
    captions_file.write_text("captions:\n  - pattern: 'Tabelle\\s+(\\d+)'\n    type: standard\n    priority: 60\n")

    config = _config()
    config.sections.extra_pattern_files = [str(sections_file)]
    config.captions.extra_pattern_files = [str(captions_file)]
    pipeline = DocumentStructurePipeline(config=config)

    structure = pipeline.analyze("Discussion\nTabelle 2: Daten\nLimitations\nSmall sample.\n")

    assert [s.name for s in structure.sections] == ['Discussion', 'Limitations']
    assert structure.captions[0].table_number == '2'


def test_stats(sample_paper):
    pipeline = DocumentStructurePipeline(config=_config())
    pipeline.analyze(sample_paper)

    stats = pipeline.get_stats()

    assert stats['text_length'] == len(sample_paper)
    assert stats['sections']['total_sections'] == 7
    assert stats['chunks']['total_chunks'] == 7
    assert stats['captions']['total'] == 2


def test_orphaned_groups_stay_unmerged(sample_paper):
    fragments = [
        TableFragment(table_number="5", page_number=6, caption="Table 5 (continued)", rows=[["a"]]),
        TableFragment(table_number="5", page_number=7, caption="Table 5 (continued)", rows=[["b"]]),
    ]

    structure = DocumentStructurePipeline(config=_config()).analyze(sample_paper, fragments=fragments)

    assert len(structure.tables) == 2
    assert all(t.is_continuation for t in structure.tables)
    assert [t.page_number for t in structure.tables] == [6, 7]
