import pytest

from paperstruct.config import (
    CHARS_PER_TOKEN,
    ChunkingConfig,
    StructureConfig,
    create_config_template,
)


def test_defaults():
    config = StructureConfig()

    assert config.chunking.max_chunk_size == 1000
    assert config.chunking.overlap_size == 200
    assert config.chunking.min_chunk_size == 100
    assert config.chunking.respect_sections is True
    assert config.chunking.adaptive_sizing is True
    assert config.chunking.merge_undersized is False
    assert config.sections.paper_type is None
    assert config.validate()


def test_overlap_chars():
    assert ChunkingConfig(overlap_size=50).overlap_chars == 50 * CHARS_PER_TOKEN


def test_yaml_round_trip(tmp_path):
    config = create_config_template("case_report")
    path = tmp_path / "config.yaml"

    config.save_yaml(str(path))
    loaded = StructureConfig.from_yaml(str(path))

    assert loaded.to_dict() == config.to_dict()
    assert loaded.sections.paper_type == "case_report"
    assert loaded.chunking.max_chunk_size == 600


def test_missing_yaml_falls_back_to_defaults(tmp_path):
    config = StructureConfig.from_yaml(str(tmp_path / "missing.yaml"))

    assert config.to_dict() == StructureConfig().to_dict()


def test_unknown_chunking_key_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("chunking:\n  max_chunk_size: 500\n  bogus: 1\n")

    with pytest.raises(ValueError):
        StructureConfig.from_yaml(str(path))


def test_partial_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("chunking:\n  max_chunk_size: 500\nparallel: true\n")

    config = StructureConfig.from_yaml(str(path))

    assert config.chunking.max_chunk_size == 500
    assert config.chunking.overlap_size == 200
    assert config.parallel is True


def test_validate_reports_bad_values():
    config = StructureConfig()
    config.chunking.max_chunk_size = 0
    assert not config.validate()

    config = StructureConfig()
    config.chunking.overlap_size = -1
    assert not config.validate()

    config = StructureConfig(logging_level="LOUD")
    assert not config.validate()


def test_update_from_dict():
    config = StructureConfig()

    config.update_from_dict({"chunking": {"min_chunk_size": 0}, "parallel": True, "nope": 1})

    assert config.chunking.min_chunk_size == 0
    assert config.chunking.max_chunk_size == 1000
    assert config.parallel is True
    assert not hasattr(config, "nope")


@pytest.mark.parametrize("kind, paper_type", [
    ("default", None),
    ("research", "research"),
    ("case_report", "case_report"),
    ("systematic_review", "systematic_review"),
])
def test_templates(kind, paper_type):
    assert create_config_template(kind).sections.paper_type == paper_type


def test_unknown_template():
    with pytest.raises(ValueError):
        create_config_template("editorial")


def test_log_level_env_override(monkeypatch):
    monkeypatch.setenv("PAPERSTRUCT_LOG_LEVEL", "debug")

    assert StructureConfig().logging_level == "DEBUG"
