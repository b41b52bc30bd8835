import json
from pathlib import Path

import pytest

from dirmirror.config import DEFAULT_PARALLELISM, MirrorConfig, build_config, load_settings, validate_directories
from dirmirror.models import Axis, Decision


def _dirs(tmp_path: Path) -> tuple[Path, Path]:
    source = tmp_path / "src"
    destination = tmp_path / "dst"
    source.mkdir()
    destination.mkdir()
    return source, destination


def test_load_settings_reads_yaml_policy_and_excludes(tmp_path: Path) -> None:
    config_file = tmp_path / "mirror.yaml"
    config_file.write_text(
        """
parallel: 8
policy:
  createDir: all
  deleteDir: none
  overwriteFile: ask
excludes:
  - "*.tmp"
  - node_modules/
""".strip(),
        encoding="utf-8",
    )

    settings = load_settings(config_file)

    assert settings.parallelism == 8
    assert settings.force is None
    assert settings.policy == {
        Axis.CREATE_DIR: Decision.ALWAYS_ALLOW,
        Axis.DELETE_DIR: Decision.NEVER_ALLOW,
        Axis.OVERWRITE_FILE: Decision.UNDECIDED,
    }
    assert settings.excludes == ["*.tmp", "node_modules/"]


def test_load_settings_reads_json(tmp_path: Path) -> None:
    config_file = tmp_path / "mirror.json"
    config_file.write_text(json.dumps({"force": True, "parallel": 2}), encoding="utf-8")

    settings = load_settings(config_file)

    assert settings.force is True
    assert settings.parallelism == 2


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("parallel: many", "parallel must be an integer"),
        ("force: yes please", "force must be a boolean"),
        ("policy: {deleteFile: maybe}", "policy.deleteFile must be one of"),
        ("policy: {removeEverything: all}", "unknown key 'removeEverything'"),
        ("excludes: '*.tmp'", "excludes must be a list of strings"),
        ("- just\n- a list", "Config root must be an object"),
    ],
)
def test_load_settings_rejects_bad_values(tmp_path: Path, content: str, message: str) -> None:
    config_file = tmp_path / "mirror.yaml"
    config_file.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError, match=message):
        load_settings(config_file)


def test_load_settings_rejects_unknown_suffix_and_missing_file(tmp_path: Path) -> None:
    config_file = tmp_path / "mirror.toml"
    config_file.write_text("parallel = 3", encoding="utf-8")

    with pytest.raises(ValueError, match=".yaml/.yml or .json"):
        load_settings(config_file)
    with pytest.raises(ValueError, match="does not exist"):
        load_settings(tmp_path / "absent.yaml")


def test_validate_directories_rejects_bad_mappings(tmp_path: Path) -> None:
    source, destination = _dirs(tmp_path)
    inside = source / "inner"
    inside.mkdir()

    with pytest.raises(ValueError, match="existing directory"):
        validate_directories(source, tmp_path / "missing")
    with pytest.raises(ValueError, match="are equal"):
        validate_directories(source, source)
    with pytest.raises(ValueError, match="inside source"):
        validate_directories(source, inside)
    with pytest.raises(ValueError, match="source is inside destination"):
        validate_directories(inside, source)

    validate_directories(source, destination)


def test_build_config_defaults_to_asking(tmp_path: Path) -> None:
    source, destination = _dirs(tmp_path)

    config = build_config(source, destination)

    assert config.parallelism == DEFAULT_PARALLELISM
    assert all(config.policy.get(axis) is Decision.UNDECIDED for axis in Axis)
    assert config.excludes == []


def test_build_config_command_line_overrides_file(tmp_path: Path) -> None:
    source, destination = _dirs(tmp_path)
    config_file = tmp_path / "mirror.yaml"
    config_file.write_text(
        "parallel: 8\npolicy:\n  deleteDir: none\nexcludes: ['*.log']\n",
        encoding="utf-8",
    )

    config = build_config(
        source,
        destination,
        parallelism=2,
        excludes=["build/"],
        config_path=config_file,
    )

    assert config.parallelism == 2
    assert config.policy.get(Axis.DELETE_DIR) is Decision.NEVER_ALLOW
    assert config.policy.get(Axis.CREATE_FILE) is Decision.UNDECIDED
    assert config.excludes == ["*.log", "build/"]


def test_build_config_force_allows_every_axis(tmp_path: Path) -> None:
    source, destination = _dirs(tmp_path)
    config_file = tmp_path / "mirror.yaml"
    config_file.write_text("policy:\n  deleteDir: none\n", encoding="utf-8")

    config = build_config(source, destination, force=True, config_path=config_file)

    assert all(config.policy.get(axis) is Decision.ALWAYS_ALLOW for axis in Axis)


def test_mirror_config_coerces_parallelism(tmp_path: Path) -> None:
    config = MirrorConfig(source=tmp_path, destination=tmp_path, parallelism=-4)

    assert config.parallelism == 1


def test_load_settings_coerces_parallel_to_at_least_one(tmp_path: Path) -> None:
    config_file = tmp_path / "mirror.yaml"
    config_file.write_text("parallel: 0", encoding="utf-8")

    settings = load_settings(config_file)

    assert settings.parallelism == 1
