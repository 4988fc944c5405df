"""
Scoring config — dimension weights and the statuses that resolve a lead.

Loaded from YAML with a hardcoded fallback. The loader returns a fresh
ScoringConfig each call; callers build one and hand it to the engine.
"""
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet

import yaml

from leadops.scoring.dimensions import Dimension, DIMENSIONS

logger = logging.getLogger('scoring.weights')

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), 'scoring_config.yaml')

SCORE_MIN = 0
SCORE_MAX = 100


class ScoringConfigError(ValueError):
    """Raised when a scoring config is structurally invalid."""


def _default_config():
    """Hardcoded fallback if YAML is missing."""
    return {
        'version': 'default',
        'weights': {
            'service': 30,
            'ad_set_name': 10,
            'ad_name': 10,
            'lead_date': 0,
            'zip': 50,
        },
        'statuses': {
            'positive': ['estimate_set'],
            'negative': ['unqualified'],
        },
        'month_cache_size': 1000,
    }


@dataclass(frozen=True)
class ScoringConfig:
    weights: Dict[Dimension, float]
    positive_statuses: FrozenSet[str] = frozenset({'estimate_set'})
    negative_statuses: FrozenSet[str] = frozenset({'unqualified'})
    month_cache_size: int = 1000
    version: str = 'default'

    def weight(self, dimension: Dimension) -> float:
        return self.weights.get(dimension, 0)

    @classmethod
    def from_dict(cls, raw) -> 'ScoringConfig':
        raw_weights = raw.get('weights') or {}
        weights = {}
        for dimension in DIMENSIONS:
            value = raw_weights.get(dimension.value, 0)
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise ScoringConfigError(f"Weight for {dimension.value} is not a number: {value!r}")
            if value < 0:
                raise ScoringConfigError(f"Weight for {dimension.value} is negative: {value}")
            weights[dimension] = value

        unknown = set(raw_weights) - {d.value for d in DIMENSIONS}
        if unknown:
            raise ScoringConfigError(f"Unknown weight keys: {sorted(unknown)}")

        total = sum(weights.values())
        if abs(total - SCORE_MAX) > 1e-9:
            raise ScoringConfigError(f"Weights must sum to {SCORE_MAX}, got {total:g}")

        statuses = raw.get('statuses') or {}
        positive = frozenset(statuses.get('positive') or ['estimate_set'])
        negative = frozenset(statuses.get('negative') or ['unqualified'])
        if positive & negative:
            raise ScoringConfigError(f"Statuses cannot be both positive and negative: {sorted(positive & negative)}")

        return cls(
            weights=weights,
            positive_statuses=positive,
            negative_statuses=negative,
            month_cache_size=int(raw.get('month_cache_size', 1000)),
            version=str(raw.get('version', 'default')),
        )


def default_scoring_config() -> ScoringConfig:
    return ScoringConfig.from_dict(_default_config())


def load_scoring_config(path=None) -> ScoringConfig:
    """
    Load scoring config from YAML, falling back to the hardcoded default.

    A missing or unparseable file falls back with a warning. A file that
    parses but has invalid weights raises ScoringConfigError.
    """
    config_path = path or DEFAULT_CONFIG_PATH
    try:
        with open(config_path, 'r') as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Scoring config not loaded (%s), using defaults", e)
        return default_scoring_config()

    config = ScoringConfig.from_dict(raw)
    logger.info("Scoring config loaded from YAML (version=%s)", config.version)
    return config
