# ABOUTME: Holds the immutable weighting factors and tunables for the practice engine.
# ABOUTME: Loads overrides from YAML configs so sessions can be tuned without code changes.

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml


@dataclass(frozen=True)
class ScoringWeights:
    """Composite score weights; applied before the accuracy multipliers."""

    concept_mastery: float = 0.4
    difficulty_match: float = 0.3
    novelty: float = 0.15
    spaced_repetition: float = 0.2


@dataclass(frozen=True)
class EngineConfig:
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    recent_window: int = 20
    optimal_time_seconds: float = 30.0
    mastery_threshold: float = 0.75
    spaced_repetition_interval_days: int = 7
    minutes_per_question: int = 2
    max_questions_limit: int = 50
    default_max_questions: int = 10


DEFAULT_CONFIG = EngineConfig()


def _build(cls, values: Mapping[str, Any], section: str):
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown {section} keys: {', '.join(unknown)}")
    return cls(**values)


def engine_config_from_dict(cfg: Mapping[str, Any]) -> EngineConfig:
    """
    Build an EngineConfig from a parsed mapping.

    Missing keys keep their defaults. Unknown keys and negative weights raise
    ``ValueError`` so typos surface instead of being silently ignored.
    """

    cfg = dict(cfg or {})
    weights_cfg = cfg.pop("weights", None) or {}
    weights = _build(ScoringWeights, weights_cfg, "weights")
    for f in fields(weights):
        if getattr(weights, f.name) < 0:
            raise ValueError(f"Weight '{f.name}' must be non-negative.")

    base = _build(EngineConfig, cfg, "engine config") if cfg else DEFAULT_CONFIG
    if base.recent_window <= 0:
        raise ValueError("recent_window must be positive.")
    if base.max_questions_limit <= 0:
        raise ValueError("max_questions_limit must be positive.")
    return replace(base, weights=weights)


def load_engine_config(config_path: Path) -> EngineConfig:
    """Load engine settings from a YAML file."""
    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"Engine config at {config_path} must be a mapping.")
    return engine_config_from_dict(cfg)


def config_to_dict(config: EngineConfig) -> Dict[str, Any]:
    data = {f.name: getattr(config, f.name) for f in fields(config) if f.name != "weights"}
    data["weights"] = {f.name: getattr(config.weights, f.name) for f in fields(config.weights)}
    return data
