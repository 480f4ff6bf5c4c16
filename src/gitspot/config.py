"""Configuration loading and defaults."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from gitspot.errors import ConfigError
from gitspot.models import DiffBaseline
from gitspot.utils.temporal import parse_lookback

CONFIG_ENV_VAR = "GITSPOT_CONFIG"
KNOWN_FORMATS = ("report", "json", "html")


@dataclass
class AnalysisConfig:
    since: str = "6m"
    ref: str = "HEAD"
    diff_baseline: str = DiffBaseline.NEWEST_SNAPSHOT.value
    workers: int = 1

    @property
    def baseline(self) -> DiffBaseline:
        return DiffBaseline(self.diff_baseline)

    def validate(self) -> None:
        parse_lookback(self.since)
        if self.diff_baseline not in {b.value for b in DiffBaseline}:
            raise ConfigError(
                f"Unknown diff_baseline {self.diff_baseline!r}: expected 'newest' or 'previous'"
            )
        if not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigError(f"workers must be a positive integer, got {self.workers!r}")
        if not self.ref:
            raise ConfigError("ref must not be empty")


@dataclass
class OutputConfig:
    limit: int | None = 100
    formats: list[str] = field(default_factory=lambda: ["report"])

    def validate(self) -> None:
        if self.limit is not None and (not isinstance(self.limit, int) or self.limit < 0):
            raise ConfigError(f"limit must be a non-negative integer, got {self.limit!r}")
        unknown = [f for f in self.formats if f not in KNOWN_FORMATS]
        if unknown:
            raise ConfigError(f"Unknown output formats: {', '.join(unknown)}")


@dataclass
class GitspotConfig:
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    repo_path: str = "."

    def validate(self) -> None:
        self.analysis.validate()
        self.output.validate()

    @classmethod
    def load(cls, path: Path | None = None) -> GitspotConfig:
        """Load config from gitspot.toml, falling back to defaults."""
        if path is None:
            path = Path(os.environ.get(CONFIG_ENV_VAR, "gitspot.toml"))
        if not path.exists():
            return cls()

        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Cannot parse {path}: {exc}") from exc

        config = cls()

        if "analysis" in raw:
            a = raw["analysis"]
            config.analysis = AnalysisConfig(
                since=a.get("since", config.analysis.since),
                ref=a.get("ref", config.analysis.ref),
                diff_baseline=a.get("diff_baseline", config.analysis.diff_baseline),
                workers=a.get("workers", config.analysis.workers),
            )

        if "output" in raw:
            o = raw["output"]
            config.output = OutputConfig(
                limit=o.get("limit", config.output.limit),
                formats=o.get("formats", config.output.formats),
            )

        config.validate()
        return config


DEFAULT_CONFIG_TEMPLATE = """\
[analysis]
# lookback window: <n>m months, <n>w weeks, <n>d days
since = "6m"
ref = "HEAD"
# "newest": diff every commit against the newest commit in the window
# "previous": diff every commit against its first parent
diff_baseline = "newest"
workers = 1

[output]
limit = 100
formats = ["report"]
"""
