"""
Continuous angle engine.

Places each pillar on a 360-degree circle where branch ``b`` owns the arc
centred at ``b * 30``, and evaluates five-element curves along it.

Three interpolation strategies share one interface:
- PairwiseStrategy (canonical): the two nearest branch centres blended with
  a raised cosine. Strictly local.
- CosineFalloffStrategy: every branch within 90 degrees contributes with
  weight cos(delta), then a knot residual is interpolated back in so the
  curve passes through the static ratios.
- FourierStrategy: a DFT fit of the water ratios, rotated by 90/180/270
  degrees for wood/fire/metal, earth as the clamped residual.

Every strategy reproduces BranchProfile.ratios exactly at branch centres.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import numpy as np

from saju.branches import BRANCH_PROFILES, adjacent_branches, blended_branch_profile, raised_cosine
from saju.config import ScoringWeights, load_weights
from saju.elements import ELEMENTS, Element, ElementVector, heavenly_stem
from saju.errors import InvalidInputError

logger = logging.getLogger(__name__)


def normalize_angle(deg: float) -> float:
    return deg % 360.0


def signed_angle(deg: float) -> float:
    """Map an angle to [-180, 180)."""
    return (deg + 180.0) % 360.0 - 180.0


# ============================================================
# INTERPOLATION STRATEGIES
# ============================================================

class InterpolationStrategy:
    name = "base"

    def ratios(self, angle: float) -> ElementVector:
        """Five-element ratios (sum 1.0) at ``angle`` degrees."""
        raise NotImplementedError

    def branch_influences(self, angle: float) -> list[float]:
        left, right, w_right = adjacent_branches(angle)
        influences = [0.0] * 12
        influences[left] = 1.0 - w_right
        influences[right] += w_right
        return influences


class PairwiseStrategy(InterpolationStrategy):
    name = "pairwise"

    def ratios(self, angle: float) -> ElementVector:
        left, right, w_right = adjacent_branches(angle)
        return (BRANCH_PROFILES[left].ratios.scaled(1.0 - w_right)
                + BRANCH_PROFILES[right].ratios.scaled(w_right))


class CosineFalloffStrategy(InterpolationStrategy):
    name = "cosine"
    REACH = 90.0

    def __init__(self):
        # Knot residuals: what the raw falloff misses at each branch centre
        self._residuals = [
            np.array(p.ratios.values()) - self._raw(p.angle) for p in BRANCH_PROFILES
        ]

    def _raw(self, angle: float) -> np.ndarray:
        acc = np.zeros(5)
        for profile in BRANCH_PROFILES:
            delta = abs(signed_angle(angle - profile.angle))
            if delta < self.REACH:
                acc += math.cos(math.radians(delta)) * np.array(profile.ratios.values())
        total = acc.sum()
        return acc / total if total > 0 else np.full(5, 0.2)

    def ratios(self, angle: float) -> ElementVector:
        left, right, w_right = adjacent_branches(angle)
        correction = (1.0 - w_right) * self._residuals[left] + w_right * self._residuals[right]
        values = np.clip(self._raw(angle) + correction, 0.0, None)
        return ElementVector(*values.tolist()).normalized()


class FourierStrategy(InterpolationStrategy):
    name = "fourier"

    # Water ratios at the 12 branch centres, 子 .. 亥
    BASE_WATER = np.array([1.0, 0.3, 0, 0, 0.1, 0, 0, 0, 0.2, 0, 0, 0.6])

    def __init__(self):
        n = len(self.BASE_WATER)
        spectrum = np.fft.rfft(self.BASE_WATER) / n
        self._a = 2 * spectrum.real
        self._b = -2 * spectrum.imag
        self._a[0] /= 2
        self._a[n // 2] /= 2
        self._b[n // 2] = 0.0
        self._harmonics = np.arange(len(spectrum))

    def base(self, rad: float) -> float:
        """The fitted water curve f(theta); may dip slightly below zero between knots."""
        phase = self._harmonics * rad
        return float(np.dot(self._a, np.cos(phase)) + np.dot(self._b, np.sin(phase)))

    def ratios(self, angle: float) -> ElementVector:
        rad = math.radians(angle)
        water = max(self.base(rad), 0.0)
        wood = max(self.base(rad - math.pi / 2), 0.0)
        fire = max(self.base(rad - math.pi), 0.0)
        metal = max(self.base(rad - 3 * math.pi / 2), 0.0)
        earth = max(1.0 - water - wood - fire - metal, 0.0)
        return ElementVector(wood, fire, earth, metal, water).normalized()


STRATEGIES = {
    PairwiseStrategy.name: PairwiseStrategy,
    CosineFalloffStrategy.name: CosineFalloffStrategy,
    FourierStrategy.name: FourierStrategy,
}


def get_strategy(name: str = "pairwise") -> InterpolationStrategy:
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise InvalidInputError(f"Unknown interpolation strategy {name!r}",
                                strategy=name, known=",".join(STRATEGIES)) from None


def sample_curves(strategy: Optional[InterpolationStrategy] = None, samples: int = 360) -> dict:
    """
    Sample a strategy's five curves around the circle.

    Returns {"angles": ndarray, <element>: ndarray, ...}.
    """
    strategy = strategy or PairwiseStrategy()
    angles = np.linspace(0.0, 360.0, samples, endpoint=False)
    table = np.array([strategy.ratios(a).values() for a in angles])
    curves = {"angles": angles}
    for i, element in enumerate(ELEMENTS):
        curves[element.value] = table[:, i]
    return curves


# ============================================================
# ANGLE CONVERTERS
# ============================================================

DAY_ROLLOVER_MINUTES = 23 * 60
CYCLE_START = 45.0   # opening edge of the 寅 arc


def time_to_hour_angle(hour: int, minute: int = 0) -> float:
    """Clock time to hour-cycle angle: 00:00 = 0 (子 centre), 15 degrees per hour."""
    return (hour * 15 + minute * 0.25) % 360


def fraction_to_angle(branch_index: int, fraction: float) -> float:
    """Branch centre at fraction 0.5, drifting +-15 degrees toward the neighbours."""
    return normalize_angle(branch_index * 30 + (fraction - 0.5) * 30)


def span_fraction(moment: datetime, start: datetime, end: datetime) -> float:
    """Elapsed fraction of ``moment`` within [start, end), clamped to [0, 1]."""
    span = (end - start).total_seconds()
    if span <= 0:
        logger.warning("Degenerate span %s .. %s; using its midpoint", start, end)
        return 0.5
    return min(max((moment - start).total_seconds() / span, 0.0), 1.0)


def cycle_fraction(angle: float) -> float:
    """Fraction of a full cycle elapsed since the opening of the 寅 arc."""
    return normalize_angle(angle - CYCLE_START) / 360


def day_fraction(hour: int, minute: int = 0) -> float:
    """Elapsed fraction of the day cycle, which opens with 寅時 at 03:00."""
    return cycle_fraction(time_to_hour_angle(hour, minute))


def day_phase(hour_angle: float) -> str:
    """Qualitative phase of the day, counted from 인시 (03:00 = 45 degrees past 子)."""
    shifted = normalize_angle(hour_angle - 60)
    if shifted < 90:
        return "생욕대"      # growth
    if shifted < 150:
        return "관록왕"      # peak
    if shifted < 225:
        return "쇠병사"      # decline
    if shifted < 300:
        return "묘절태양"    # dormancy
    return "생욕대"


# ============================================================
# BOUNDARY BLENDS
# ============================================================

TRANSITION_ZONE = 0.1


@dataclass(frozen=True)
class BoundaryBlend:
    fraction: float
    blend_prev: float
    blend_next: float
    phase: str          # entering / stable / exiting

    def to_dict(self):
        return vars(self).copy()


@dataclass(frozen=True)
class DayTransitionBlend:
    blend: float
    smooth_blend: float
    needs_blend: bool

    def to_dict(self):
        return vars(self).copy()


def blend_factor(angle: float, boundary: float, width: float = 30.0) -> float:
    """0 well before ``boundary``, 0.5 on it, 1 well after, raised-cosine in between."""
    t = min(max((signed_angle(angle - boundary) + width / 2) / width, 0.0), 1.0)
    return raised_cosine(t)


def boundary_blend(moment: datetime, start: datetime, end: datetime) -> BoundaryBlend:
    """How strongly a moment near the edge of a month or year leans into the neighbour."""
    if (end - start).total_seconds() <= 0:
        return BoundaryBlend(0.5, 0.0, 0.0, "stable")
    fraction = span_fraction(moment, start, end)
    if fraction < TRANSITION_ZONE:
        return BoundaryBlend(fraction, 1.0 - raised_cosine(fraction / TRANSITION_ZONE), 0.0, "entering")
    if fraction > 1 - TRANSITION_ZONE:
        t = (fraction - (1 - TRANSITION_ZONE)) / TRANSITION_ZONE
        return BoundaryBlend(fraction, 0.0, raised_cosine(t), "exiting")
    return BoundaryBlend(fraction, 0.0, 0.0, "stable")


def hour_day_blend(hour: int, minute: int = 0) -> DayTransitionBlend:
    """Blend toward the next day's pillar across 자시 (23:00-01:00)."""
    total = hour * 60 + minute
    if hour >= 23:
        blend = (total - DAY_ROLLOVER_MINUTES) / 120
    elif hour < 1:
        blend = (total + 60) / 120
    else:
        return DayTransitionBlend(0.0, 0.0, False)
    blend = min(max(blend, 0.0), 1.0)
    return DayTransitionBlend(blend, raised_cosine(blend), True)


# ============================================================
# SNAPSHOT
# ============================================================

@dataclass(frozen=True)
class PillarAngle:
    position: str
    angle: float
    ratios: ElementVector
    influences: tuple

    @property
    def dominant_branch(self) -> int:
        return max(range(12), key=lambda i: self.influences[i])

    def to_dict(self):
        return {
            "position": self.position,
            "angle": self.angle,
            "ratios": self.ratios.to_dict(),
            "dominant_branch": self.dominant_branch,
            "influences": list(self.influences),
        }


@dataclass(frozen=True)
class ContinuousSnapshot:
    strategy: str
    pillars: dict                 # position -> PillarAngle
    stems: ElementVector          # stem element proportions
    combined: ElementVector       # percentages, sum 100
    day_phase: Optional[str] = None
    blends: dict = field(default_factory=dict, compare=False)

    @property
    def angles(self) -> dict[str, float]:
        return {p: pa.angle for p, pa in self.pillars.items()}

    def to_dict(self):
        return {
            "strategy": self.strategy,
            "pillars": {p: pa.to_dict() for p, pa in self.pillars.items()},
            "stems": self.stems.to_dict(),
            "combined": self.combined.to_dict(),
            "day_phase": self.day_phase,
            "blends": {k: v.to_dict() for k, v in self.blends.items()},
        }


def compute_continuous_angles(chart, hour: Optional[int] = None, minute: Optional[int] = None,
                              strategy: Optional[InterpolationStrategy] = None,
                              weights: Optional[ScoringWeights] = None) -> ContinuousSnapshot:
    """
    Continuous angles and a combined five-element snapshot for a discrete chart.

    The month angle uses the birth moment's fraction through its solar term
    month. Year and day angles follow the month and hour angles: how far the
    faster cycle has run since the opening of the 寅 arc places the slower
    pillar within its branch. The hour angle is clock-linear. Without a birth
    time the hour pillar is omitted and the day sits at its branch centre.

    Args:
        chart: DiscretePillars with term boundaries
        hour, minute: clock time; default to the chart's own birth time
        strategy: interpolation strategy, PairwiseStrategy when omitted
        weights: snapshot weights, the packaged weights file when omitted
    """
    strategy = strategy or PairwiseStrategy()
    weights = weights or load_weights()
    if chart.birth is None or chart.current_term is None:
        raise InvalidInputError("continuous angles need a chart computed from a birth moment",
                                computation="compute_continuous_angles")

    has_time = chart.has_time
    if has_time:
        hour = chart.birth.hour if hour is None else hour
        minute = chart.birth.minute if minute is None else minute

    angles = {}
    if has_time:
        angles["hour"] = time_to_hour_angle(hour, minute)
    angles["day"] = fraction_to_angle(chart.day.index % 12, day_fraction(hour, minute) if has_time else 0.5)
    angles["month"] = fraction_to_angle(
        chart.month.index % 12,
        span_fraction(chart.birth, chart.current_term.instant, chart.next_term.instant))
    angles["year"] = fraction_to_angle(chart.year.index % 12, cycle_fraction(angles["month"]))

    pillars = {
        p: PillarAngle(p, a, strategy.ratios(a), tuple(strategy.branch_influences(a)))
        for p, a in angles.items()
    }

    stem_acc = dict.fromkeys(ELEMENTS, 0.0)
    for p in chart.positions:
        stem_acc[heavenly_stem(chart.pillar(p).index % 10).element] += weights.natal_stem[p]
    stems = ElementVector.from_mapping(stem_acc).normalized()

    combined = stems.scaled(weights.snapshot["stems"])
    for p, pa in pillars.items():
        combined = combined + pa.ratios.scaled(weights.snapshot[p])
    combined = combined.normalized(100.0)

    blends = {
        "month": boundary_blend(chart.birth, chart.current_term.instant, chart.next_term.instant),
        "year": boundary_blend(chart.birth, chart.year_start, chart.year_end),
    }
    if has_time:
        blends["day"] = hour_day_blend(hour, minute)

    return ContinuousSnapshot(
        strategy=strategy.name,
        pillars=pillars,
        stems=stems,
        combined=combined,
        day_phase=day_phase(angles["hour"]) if has_time else None,
        blends=blends,
    )


def blended_profiles(snapshot: ContinuousSnapshot) -> dict:
    """Blended branch profile (scalars and dominant categorical data) at each pillar angle."""
    return {p: blended_branch_profile(pa.angle, pa.ratios) for p, pa in snapshot.pillars.items()}
