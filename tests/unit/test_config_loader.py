# tests/unit/test_config_loader.py
"""Project file loading: includes, parameters and validation"""
import textwrap

import pytest

from pipesplit.config import ConfigError, IncludeCycleError, load_config


MINIMAL = """
settings:
  max_segment_length: 6000
document:
  elements: []
workflow:
  - operation: select
    description: "Pick the run"
"""


def _write(directory, name, text):
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


def test_minimal_project(tmp_path):
    cfg = load_config(str(_write(tmp_path, "project.yaml", MINIMAL)))

    assert cfg.section("settings") == {"max_segment_length": 6000}
    assert cfg.section("workflow")[0]["operation"] == "select"
    assert cfg.section("output_files") == {}
    assert cfg.path == str(tmp_path / "project.yaml")


def test_include_is_merged_underneath(tmp_path):
    _write(tmp_path, "shared/defaults.yaml", """
        settings:
          max_segment_length: 5800
          length_unit: mm
        metadata:
          project_name: Shared
    """)
    project = _write(tmp_path, "project.yaml", """
        include: [shared/defaults.yaml]
        settings:
          max_segment_length: 6000
        document: {}
        workflow: []
    """)

    cfg = load_config(str(project))

    assert cfg.section("settings") == {"max_segment_length": 6000, "length_unit": "mm"}
    assert cfg.section("metadata")["project_name"] == "Shared"
    assert "include" not in cfg.data


def test_nested_include_resolves_against_including_file(tmp_path):
    _write(tmp_path, "a/b/leaf.yaml", "metadata: {project_name: Leaf}\n")
    _write(tmp_path, "a/middle.yaml", "include: [b/leaf.yaml]\n")
    project = _write(tmp_path, "project.yaml",
                     "include: [a/middle.yaml]\n" + textwrap.dedent(MINIMAL))

    assert load_config(str(project)).section("metadata")["project_name"] == "Leaf"


def test_include_cycle(tmp_path):
    _write(tmp_path, "one.yaml", "include: [two.yaml]\n")
    _write(tmp_path, "two.yaml", "include: [one.yaml]\n")

    with pytest.raises(IncludeCycleError):
        load_config(str(tmp_path / "one.yaml"))


def test_shared_include_is_not_a_cycle(tmp_path):
    _write(tmp_path, "common.yaml", "settings: {length_unit: mm}\n")
    _write(tmp_path, "a.yaml", "include: [common.yaml]\nmetadata: {from_a: 1}\n")
    _write(tmp_path, "b.yaml", "include: [common.yaml]\nmetadata: {from_b: 2}\n")
    project = _write(tmp_path, "project.yaml",
                     "include: [a.yaml, b.yaml]\n" + textwrap.dedent(MINIMAL))

    cfg = load_config(str(project))

    assert cfg.section("metadata") == {"from_a": 1, "from_b": 2}
    assert cfg.section("settings") == {"length_unit": "mm", "max_segment_length": 6000}


def test_self_include_is_a_cycle(tmp_path):
    _write(tmp_path, "self.yaml", "include: [self.yaml]\n")

    with pytest.raises(IncludeCycleError):
        load_config(str(tmp_path / "self.yaml"))


def test_params_keep_their_type(tmp_path):
    project = _write(tmp_path, "project.yaml", """
        params:
          standard_length: 5800.0
          job: "B-12"
        metadata:
          project_name: "Job ${job} riser"
        settings:
          max_segment_length: "${standard_length}"
        document: {}
        workflow: []
    """)

    cfg = load_config(str(project))

    assert cfg.section("settings")["max_segment_length"] == 5800.0
    assert cfg.section("metadata")["project_name"] == "Job B-12 riser"


def test_environment_parameter(tmp_path, monkeypatch):
    monkeypatch.setenv("PIPESPLIT_TEST_OUT", "/tmp/out")
    project = _write(tmp_path, "project.yaml", """
        output_files:
          cut_list: "${ENV:PIPESPLIT_TEST_OUT}/cuts.txt"
        settings: {}
        document: {}
        workflow: []
    """)

    assert load_config(str(project)).section("output_files")["cut_list"] == "/tmp/out/cuts.txt"


def test_unknown_parameter(tmp_path):
    project = _write(tmp_path, "project.yaml", """
        settings:
          max_segment_length: "${nope}"
        document: {}
        workflow: []
    """)

    with pytest.raises(ConfigError, match="nope"):
        load_config(str(project))


@pytest.mark.parametrize("missing", ["settings", "document", "workflow"])
def test_missing_required_section(tmp_path, missing):
    sections = {"settings": "settings: {}", "document": "document: {}", "workflow": "workflow: []"}
    text = "\n".join(v for k, v in sections.items() if k != missing) + "\n"

    with pytest.raises(ConfigError, match=missing):
        load_config(str(_write(tmp_path, "project.yaml", text)))


def test_missing_section_allowed_without_validation(tmp_path):
    cfg = load_config(str(_write(tmp_path, "partial.yaml", "settings: {}\n")), validate=False)
    assert cfg.section("document") == {}


def test_unknown_operation(tmp_path):
    project = _write(tmp_path, "project.yaml", """
        settings: {}
        document: {}
        workflow:
          - operation: split_everything
    """)

    with pytest.raises(ConfigError, match="split_everything"):
        load_config(str(project))


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(str(tmp_path / "absent.yaml"))


def test_top_level_must_be_mapping(tmp_path):
    with pytest.raises(ConfigError, match="mapping"):
        load_config(str(_write(tmp_path, "list.yaml", "- a\n- b\n")))
