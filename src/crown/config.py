"""Build configuration, optionally read from a YAML file."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from crown.exceptions import ConfigError

DEFAULT_EXCLUDED_DOMAINS: tuple[str, ...] = (
    "archaic", "colloquial", "countable", "dated", "figurative", "humorous",
    "intransitive", "obsolete", "offensive", "pejorative", "rare", "slang",
    "transitive", "uncountable", "vulgar",
)


@dataclass(slots=True)
class BuildConfig:
    """Ceilings and knobs for a build.

    The ceilings mirror the limits of the lexicographer file format: a
    synset can hold at most ``max_pointers`` pointers, a lemma at most
    ``max_senses`` senses, and one lexicographer file at most
    ``max_lemma_instances`` lemmas that differ only by case or lex id.
    """

    max_pointers: int = 500
    max_senses: int = 99
    max_lemma_length: int = 47
    max_lemma_instances: int = 15
    min_gloss_length: int = 3
    max_gloss_length: int = 250
    iterations: int = 3
    workers: int | None = None
    spacy_model: str = "en_core_web_sm"
    excluded_domains: tuple[str, ...] = field(
        default_factory=lambda: DEFAULT_EXCLUDED_DOMAINS
    )
    resubmit_dropped: bool = False
    progress_interval: int = 10_000

    def replace(self, **changes: Any) -> BuildConfig:
        return dataclasses.replace(self, **changes)


# Expected types for each key; ``None`` marks an optional value.
_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "max_pointers": (int,),
    "max_senses": (int,),
    "max_lemma_length": (int,),
    "max_lemma_instances": (int,),
    "min_gloss_length": (int,),
    "max_gloss_length": (int,),
    "iterations": (int,),
    "workers": (int, type(None)),
    "spacy_model": (str,),
    "excluded_domains": (list,),
    "resubmit_dropped": (bool,),
    "progress_interval": (int,),
}


def load_config(source: str | Path) -> BuildConfig:
    """Read a :class:`BuildConfig` from a YAML file.

    Raises:
        ConfigError: If the YAML is invalid, the root is not a mapping, or a
            key is unknown or has the wrong type.
        FileNotFoundError: If the file does not exist.
    """
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    text = path.read_text(encoding="utf-8")
    return parse_config(text)


def parse_config(text: str) -> BuildConfig:
    try:
        data = yaml.safe_load(text)
        lines = _key_lines(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line_num = mark.line + 1 if mark else None
        raise ConfigError(f"Invalid YAML: {e}", line=line_num) from e

    if data is None:
        return BuildConfig()
    if not isinstance(data, dict):
        raise ConfigError("YAML root must be a mapping (dictionary)")

    values: dict[str, Any] = {}
    for key, value in data.items():
        line = lines.get(key)
        expected = _FIELD_TYPES.get(key)
        if expected is None:
            raise ConfigError(f"Unknown configuration key: {key!r}", line=line)
        # bool is an int subclass; keep ``max_senses: yes`` out.
        if isinstance(value, bool) and bool not in expected:
            raise ConfigError(f"Field {key!r} must not be a boolean", line=line)
        if not isinstance(value, expected):
            names = " or ".join(t.__name__ for t in expected)
            raise ConfigError(f"Field {key!r} must be {names}", line=line)
        if key == "excluded_domains":
            if not all(isinstance(v, str) for v in value):
                raise ConfigError(
                    "Field 'excluded_domains' must be a list of strings", line=line,
                )
            value = tuple(value)
        elif isinstance(value, int) and not isinstance(value, bool) and value < 0:
            raise ConfigError(f"Field {key!r} must not be negative", line=line)
        values[key] = value
    return BuildConfig(**values)


def _key_lines(text: str) -> dict[Any, int]:
    """Map each top-level key to its 1-based line number."""
    node = yaml.compose(text)
    if not isinstance(node, yaml.MappingNode):
        return {}
    return {
        key.value: key.start_mark.line + 1
        for key, _value in node.value
        if isinstance(key, yaml.ScalarNode)
    }
