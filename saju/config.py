"""
Scoring configuration.

Numeric weights live in ``weights.yaml`` next to this module and load into a
frozen ScoringWeights. Structural fractions of the transformation rules
(1/3 stem combine, 2/3 branch combine, royal-branch splits) stay in code.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

import yaml

from saju.errors import InvalidInputError

logger = logging.getLogger(__name__)

WEIGHTS_PATH = Path(__file__).with_name("weights.yaml")

NATAL_POSITIONS = ("year", "month", "day", "hour")
OVERLAY_KINDS = ("daeun", "saeun", "wolun")
SNAPSHOT_KEYS = ("month", "day", "hour", "year", "stems")


@dataclass(frozen=True)
class DisruptionRules:
    per_event: float
    cap: float
    earth_factor: float
    bridge_share: float
    bridge_factor: float
    day_master_share: float
    day_master_factor: float


@dataclass(frozen=True)
class ScoringWeights:
    natal_stem: dict
    natal_branch: dict
    overlay_stem: dict
    overlay_branch: dict
    interaction: dict
    damping: float
    disruption: DisruptionRules
    snapshot: dict

    def to_dict(self):
        return {
            "natal": {"stem": dict(self.natal_stem), "branch": dict(self.natal_branch)},
            "overlay": {
                "stem": dict(self.overlay_stem),
                "branch": dict(self.overlay_branch),
                "interaction": dict(self.interaction),
                "damping": self.damping,
            },
            "disruption": dict(vars(self.disruption)),
            "snapshot": dict(self.snapshot),
        }


def _section(data: dict, keys: tuple, where: str) -> dict:
    if not isinstance(data, dict):
        raise InvalidInputError(f"{where} must be a mapping", code="INVALID_CONFIG", section=where)
    missing = [k for k in keys if k not in data]
    if missing:
        raise InvalidInputError(f"{where} is missing keys", code="INVALID_CONFIG",
                                section=where, missing=",".join(missing))
    return {k: float(data[k]) for k in keys}


def parse_weights(data: dict) -> ScoringWeights:
    try:
        natal, overlay = data["natal"], data["overlay"]
        disruption = _section(data["disruption"], tuple(DisruptionRules.__dataclass_fields__), "disruption")
        snapshot = _section(data["snapshot"], SNAPSHOT_KEYS, "snapshot")
        damping = float(overlay["damping"])
    except (KeyError, TypeError) as e:
        raise InvalidInputError("malformed weights file", code="INVALID_CONFIG", error=str(e)) from e

    return ScoringWeights(
        natal_stem=_section(natal.get("stem"), NATAL_POSITIONS, "natal.stem"),
        natal_branch=_section(natal.get("branch"), NATAL_POSITIONS, "natal.branch"),
        overlay_stem=_section(overlay.get("stem"), OVERLAY_KINDS, "overlay.stem"),
        overlay_branch=_section(overlay.get("branch"), OVERLAY_KINDS, "overlay.branch"),
        interaction=_section(overlay.get("interaction"), NATAL_POSITIONS, "overlay.interaction"),
        damping=damping,
        disruption=DisruptionRules(**disruption),
        snapshot=snapshot,
    )


@lru_cache(maxsize=None)
def load_weights(path: Optional[Union[str, Path]] = None) -> ScoringWeights:
    """Load and cache the weights file; the packaged ``weights.yaml`` by default."""
    path = Path(path) if path is not None else WEIGHTS_PATH
    logger.debug("Loading scoring weights from %s", path)
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise InvalidInputError("weights file is empty or not a mapping", code="INVALID_CONFIG",
                                path=str(path))
    return parse_weights(data)
