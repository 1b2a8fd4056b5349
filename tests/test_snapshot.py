from paperstruct import DocumentStructurePipeline
from paperstruct.config import create_config_template
from paperstruct.snapshot import create_snapshot, save_snapshot, load_snapshot, compare_snapshots


def _run(text, preset="default"):
    config = create_config_template(preset)
    structure = DocumentStructurePipeline(config=config).analyze(text)
    return create_snapshot(structure, text, config)


def test_repeated_runs_are_identical(sample_paper):
    first = _run(sample_paper)
    second = _run(sample_paper)

    comparison = compare_snapshots(first, second)

    assert comparison == {"identical": True, "differences": []}
    assert first.snapshot_id != second.snapshot_id


def test_counts(sample_paper):
    snapshot = _run(sample_paper)

    assert snapshot.counts['sections'] == 7
    assert snapshot.counts['captions'] == 2
    assert snapshot.counts['tables'] == 0
    assert set(snapshot.output_hashes) == {'sections', 'chunks', 'captions', 'tables', 'multi_page_tables'}


def test_changed_text_is_reported(sample_paper):
    first = _run(sample_paper)
    second = _run(sample_paper.replace("3. Results", "3. Findings"))

    comparison = compare_snapshots(first, second)

    assert not comparison["identical"]
    assert "Source text differs" in comparison["differences"]
    assert any("sections" in d for d in comparison["differences"])


def test_changed_config_is_reported(sample_paper):
    comparison = compare_snapshots(_run(sample_paper), _run(sample_paper, preset="case_report"))

    assert "Configuration differs" in comparison["differences"]


def test_save_and_load(tmp_path, sample_paper):
    snapshot = _run(sample_paper)

    path = save_snapshot(snapshot, str(tmp_path / "snapshots" / "snap.json"))
    loaded = load_snapshot(path)

    assert loaded == snapshot
