from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import json
import yaml

from dirmirror.models import Axis, Decision, SyncPolicy


DEFAULT_PARALLELISM = 5


@dataclass(slots=True)
class MirrorConfig:
    source: Path
    destination: Path
    parallelism: int = DEFAULT_PARALLELISM
    policy: SyncPolicy = field(default_factory=SyncPolicy)
    excludes: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.parallelism = max(1, int(self.parallelism))


@dataclass(slots=True)
class FileSettings:
    """Values read from an optional config file; ``None`` means not given."""

    parallelism: int | None = None
    force: bool | None = None
    policy: dict[Axis, Decision] = field(default_factory=dict)
    excludes: list[str] = field(default_factory=list)


def _as_int(value: Any, field_name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    return value


def _as_bool(value: Any, field_name: str) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    raise ValueError(f"{field_name} must be a boolean")


def _as_list_of_strings(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or any(not isinstance(item, str) for item in value):
        raise ValueError(f"{field_name} must be a list of strings")
    return [item for item in value if item.strip()]


def _as_policy(value: Any, field_name: str) -> dict[Axis, Decision]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be an object")

    known_axes = {axis.value: axis for axis in Axis}
    known_decisions = {decision.value: decision for decision in Decision}
    decisions: dict[Axis, Decision] = {}
    for key, raw_decision in value.items():
        axis = known_axes.get(key)
        if axis is None:
            raise ValueError(f"{field_name} has unknown key '{key}'; expected one of: {', '.join(known_axes)}")
        decision = known_decisions.get(raw_decision) if isinstance(raw_decision, str) else None
        if decision is None:
            raise ValueError(f"{field_name}.{key} must be one of: {', '.join(known_decisions)}")
        decisions[axis] = decision
    return decisions


def _load_raw_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ValueError(f"Config file does not exist: {config_path}")

    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in {".yml", ".yaml"}:
        try:
            loaded = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Config file is not valid YAML: {exc}") from exc
    elif suffix == ".json":
        try:
            loaded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Config file is not valid JSON: {exc}") from exc
    else:
        raise ValueError("Config file must be .yaml/.yml or .json")

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError("Config root must be an object")
    return loaded


def load_settings(config_path: Path) -> FileSettings:
    raw = _load_raw_config(config_path)
    parallelism = _as_int(raw.get("parallel"), "parallel")
    if parallelism is not None:
        parallelism = max(1, parallelism)

    return FileSettings(
        parallelism=parallelism,
        force=_as_bool(raw.get("force"), "force"),
        policy=_as_policy(raw.get("policy"), "policy"),
        excludes=_as_list_of_strings(raw.get("excludes"), "excludes"),
    )


def validate_directories(source: Path, destination: Path) -> None:
    for label, path in (("source", source), ("destination", destination)):
        if not path.exists() or not path.is_dir():
            raise ValueError(f"{label} must be an existing directory: {path}")

    source_resolved = source.resolve()
    destination_resolved = destination.resolve()

    if source_resolved == destination_resolved:
        raise ValueError(f"Invalid mapping: source and destination are equal: {source}")

    if destination_resolved.is_relative_to(source_resolved):
        raise ValueError(
            f"Invalid mapping: destination is inside source, which can recurse: {destination}"
        )

    if source_resolved.is_relative_to(destination_resolved):
        raise ValueError(
            f"Invalid mapping: source is inside destination, which would delete it: {source}"
        )


def build_config(
    source: Path,
    destination: Path,
    parallelism: int | None = None,
    force: bool = False,
    excludes: list[str] | None = None,
    config_path: Path | None = None,
) -> MirrorConfig:
    """Merge command line values over the config file over the defaults."""
    settings = load_settings(config_path) if config_path is not None else FileSettings()
    validate_directories(source, destination)

    if force or settings.force:
        policy = SyncPolicy.forced()
    else:
        policy = SyncPolicy(settings.policy)

    if parallelism is None:
        parallelism = settings.parallelism if settings.parallelism is not None else DEFAULT_PARALLELISM

    return MirrorConfig(
        source=source,
        destination=destination,
        parallelism=parallelism,
        policy=policy,
        excludes=[*settings.excludes, *(excludes or [])],
    )
