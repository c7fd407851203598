"""Configuration helpers: recall directory discovery, settings, review options."""

import pathlib
from dataclasses import dataclass, field

from recall.leech import LeechMethod
from recall.scanner import DEFAULT_FILE_TYPES
from recall.schedulers import ALGORITHMS

DEFAULT_SETTINGS = {
    "algorithm": "sm2",
    "adapter": "flashcard",
    "file_types": list(DEFAULT_FILE_TYPES),
    "maximum_cards_per_session": 30,
    "maximum_duration_minutes": 20,
    "leech_failure_threshold": 15,
    "leech_method": "skip",
    "tags": [],
    "include_orphans": False,
    "reverse_probability": 0.0,
    "cram": False,
    "cram_hours": 12,
}


def get_recall_dir() -> pathlib.Path:
    config_path = pathlib.Path.home() / ".config" / "recall" / "config"
    if config_path.exists():
        for line in config_path.read_text().splitlines():
            line = line.strip()
            if line.startswith("DIR="):
                return pathlib.Path(line[4:].strip()).expanduser()
    return pathlib.Path.home() / ".local" / "share" / "recall"


def load_settings(recall_dir: pathlib.Path) -> dict:
    settings_path = recall_dir / "settings.toml"
    settings = dict(DEFAULT_SETTINGS)
    if settings_path.exists():
        settings.update(_parse_toml_simple(settings_path.read_text()))
    return settings


def _parse_toml_simple(text: str) -> dict:
    """Minimal TOML parser for flat key=value files."""
    result = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            k, v = line.split("=", 1)
            result[k.strip()] = _parse_value(_strip_comment(v).strip())
    return result


def _strip_comment(v: str) -> str:
    """Drop a trailing ``# comment`` that is not inside quotes."""
    quote = None
    for i, ch in enumerate(v):
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "#":
            return v[:i]
    return v


def _parse_value(v: str):
    if v.startswith("[") and v.endswith("]"):
        return [_parse_value(x.strip()) for x in v[1:-1].split(",") if x.strip()]
    if len(v) >= 2 and v[0] == v[-1] and v[0] in "\"'":
        return v[1:-1]
    if v.isdigit():
        return int(v)
    if v == "true":
        return True
    if v == "false":
        return False
    try:
        return float(v)
    except ValueError:
        return v


@dataclass
class ReviewConfig:
    maximum_cards_per_session: int = 30
    maximum_duration_minutes: int = 20
    leech_failure_threshold: int = 15
    leech_method: LeechMethod = LeechMethod.SKIP
    algorithm: str = "sm2"
    tags: set[str] = field(default_factory=set)
    include_orphans: bool = False
    reverse_probability: float = 0.0
    cram: bool = False
    cram_hours: int = 12

    def __post_init__(self):
        for name in ("maximum_cards_per_session", "maximum_duration_minutes",
                     "leech_failure_threshold", "cram_hours"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
        try:
            self.leech_method = LeechMethod(self.leech_method)
        except ValueError:
            raise ValueError(f"leech_method must be 'skip' or 'warn', got {self.leech_method!r}") from None
        self.algorithm = str(self.algorithm).lower()
        if self.algorithm not in ALGORITHMS:
            raise ValueError(f"algorithm must be one of {', '.join(ALGORITHMS)}, got {self.algorithm!r}")
        if not 0.0 <= float(self.reverse_probability) <= 1.0:
            raise ValueError(f"reverse_probability must be within [0, 1], got {self.reverse_probability!r}")
        self.reverse_probability = float(self.reverse_probability)
        if isinstance(self.tags, str):
            self.tags = {self.tags} if self.tags else set()
        self.tags = {t.strip().lower() for t in self.tags if t.strip()}


def review_config(settings: dict, **overrides) -> ReviewConfig:
    """Build a ReviewConfig from settings; non-None overrides win."""
    values = {name: settings[name] for name in ReviewConfig.__dataclass_fields__
              if name in settings}
    values.update({k: v for k, v in overrides.items() if v is not None})
    return ReviewConfig(**values)
