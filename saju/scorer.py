"""
Fortune scorer: weighted five-element and ten-god profile of a natal chart,
optionally overlaid with decade (daeun), year (saeun) and month (wolun) luck
pillars.

Pipeline:
1. Base accumulation. Stems add their element at the position weight;
   branches add their element distribution at the position weight.
2. Relation detection. Adjacent natal pairs (hour-day, day-month,
   month-year), then every overlay-natal pair, then complete triads over
   all active branches.
3. Transformation. Each combine moves a fraction of a slot's weight to the
   combined element and discounts the slot's own factor multiplicatively.
4. Clash disruption. Clashes only record events; one final pass turns them
   into a small uniform deduction across the five elements.
5. Ten-god aggregation of every weighted contribution.
6. Percentages, ten gods also grouped into five pairs.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Union

from saju.bazi import DiscretePillars, TenGod, TenGodGroup, ten_god
from saju.branches import branch_profile
from saju.config import OVERLAY_KINDS, ScoringWeights, load_weights
from saju.continuous import InterpolationStrategy, PairwiseStrategy
from saju.elements import (ELEMENTS, Element, ElementVector, Polarity, heavenly_stem, mediator,
                           percentages, stem_for)
from saju.errors import InvalidInputError, require_index
from saju.relations import (ROYAL_BRANCHES, branch_clash, branch_combine, complete_triads,
                            half_combine, stem_clash, stem_combine)

logger = logging.getLogger(__name__)

STEM_COMBINE_FRACTION = 1 / 3
BRANCH_COMBINE_FRACTION = 2 / 3
HALF_COMBINE_FRACTION = 1 / 3
TRIAD_STRENGTH = 0.5

# Position pairs where a half combine splits by royal branch instead of resistance
HALF_COMBINE_PAIRS = (frozenset({"month", "year"}), frozenset({"day", "hour"}))


def resistance(p1: str, p2: str, target: str) -> float:
    """
    Resistance multiplier for a natal pair (p1, p2) acting on ``target``.

    The day pillar resists its hour neighbour, day and month resist each
    other, and the month resists the year.
    """
    if p1 == "hour" and p2 == "day" and target == "day":
        return 0.5
    if p1 == "day" and p2 == "month":
        return 0.5
    if p1 == "month" and p2 == "year" and target == "month":
        return 0.5
    return 1.0


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class FortunePillar:
    kind: str     # daeun / saeun / wolun
    index: int

    def __post_init__(self):
        if self.kind not in OVERLAY_KINDS:
            raise InvalidInputError(f"Unknown overlay kind {self.kind!r}", kind=self.kind)
        require_index(self.index, 60, f"{self.kind} pillar")


@dataclass(frozen=True)
class Interaction:
    kind: str                     # combine / clash / partial-combine / triple-combine
    row: str                      # stem / branch
    source: str
    target: Optional[str]
    element: Optional[Element] = None

    def to_dict(self):
        return {
            "kind": self.kind,
            "row": self.row,
            "source": self.source,
            "target": self.target,
            "element": self.element.value if self.element else None,
        }


@dataclass(frozen=True)
class ClashEvent:
    source: str
    target: str
    first: Element
    second: Element
    overlay: bool


@dataclass
class Slot:
    """One stem or branch of one pillar while the profile is being built."""
    position: str
    row: str
    index: int
    weight: float
    polarity: Polarity
    distribution: ElementVector
    overlay: bool = False
    own: float = 1.0
    transforms: list = field(default_factory=list)

    def transform(self, element: Element, fraction: float):
        self.transforms.append((element, fraction))
        self.own *= 1.0 - fraction

    @property
    def own_contribution(self) -> float:
        return self.weight * self.own

    def to_dict(self):
        return {
            "position": self.position,
            "row": self.row,
            "index": self.index,
            "weight": self.weight,
            "own_factor": self.own,
            "transforms": [{"element": e.value, "fraction": f} for e, f in self.transforms],
        }


@dataclass(frozen=True)
class FortuneProfile:
    oheng_raw: ElementVector
    oheng_percent: ElementVector
    sipsung_raw: dict
    sipsung_percent: dict
    sipsung_grouped: dict
    interactions: tuple
    total: float
    disruption: float
    slots: tuple

    def slot(self, position: str, row: str) -> Slot:
        for s in self.slots:
            if s.position == position and s.row == row:
                return s
        raise KeyError((position, row))

    def to_dict(self):
        return {
            "oheng": {"raw": self.oheng_raw.to_dict(), "percent": self.oheng_percent.to_dict()},
            "sipsung": {
                "raw": {g.value: v for g, v in self.sipsung_raw.items()},
                "percent": {g.value: v for g, v in self.sipsung_percent.items()},
                "grouped": {g.value: v for g, v in self.sipsung_grouped.items()},
            },
            "interactions": [i.to_dict() for i in self.interactions],
            "total": self.total,
            "disruption": self.disruption,
        }


OverlayInput = Union[Mapping[str, int], Iterable[FortunePillar], None]


def _coerce_overlays(overlays: OverlayInput) -> list[FortunePillar]:
    if not overlays:
        return []
    if isinstance(overlays, Mapping):
        pillars = [FortunePillar(k, v) for k, v in overlays.items() if v is not None]
    else:
        pillars = list(overlays)
    order = {k: i for i, k in enumerate(OVERLAY_KINDS)}
    return sorted(pillars, key=lambda fp: order[fp.kind])


# ============================================================
# SCORER
# ============================================================

class _ProfileBuilder:

    def __init__(self, natal: DiscretePillars, has_time: bool, overlays: list[FortunePillar],
                 natal_angles: Optional[Mapping[str, float]], overlay_angles: Optional[Mapping[str, float]],
                 weights: ScoringWeights, strategy: InterpolationStrategy):
        self.weights = weights
        self.strategy = strategy
        self.day_stem = natal.day.index % 10
        self.natal_positions = [p for p in ("hour", "day", "month", "year") if has_time or p != "hour"]
        self.overlay_positions = [fp.kind for fp in overlays]
        self.stems: dict[str, Slot] = {}
        self.branches: dict[str, Slot] = {}
        self.interactions: list[Interaction] = []
        self.clashes: list[ClashEvent] = []
        self.consumed: set[tuple[str, str]] = set()

        for p in self.natal_positions:
            self._add(p, natal.pillar(p).index, weights.natal_stem[p], weights.natal_branch[p],
                      (natal_angles or {}).get(p), overlay=False)
        for fp in overlays:
            self._add(fp.kind, fp.index, weights.overlay_stem[fp.kind], weights.overlay_branch[fp.kind],
                      (overlay_angles or {}).get(fp.kind), overlay=True)

    def _add(self, position, index, stem_weight, branch_weight, angle, overlay):
        stem = heavenly_stem(index % 10)
        branch = branch_profile(index % 12)
        distribution = branch.ratios if angle is None else self.strategy.ratios(angle)
        self.stems[position] = Slot(position, "stem", stem.index, stem_weight, stem.polarity,
                                    ElementVector.single(stem.element), overlay)
        self.branches[position] = Slot(position, "branch", branch.index, branch_weight, branch.polarity,
                                       distribution, overlay)

    @property
    def positions(self) -> list[str]:
        return self.natal_positions + self.overlay_positions

    # -- natal pairs -------------------------------------------------

    def natal_pairs(self):
        for p1, p2 in zip(self.natal_positions, self.natal_positions[1:]):
            rf1, rf2 = resistance(p1, p2, p1), resistance(p1, p2, p2)
            s1, s2 = self.stems[p1], self.stems[p2]
            b1, b2 = self.branches[p1], self.branches[p2]

            element = stem_combine(s1.index, s2.index)
            if element is not None:
                s1.transform(element, STEM_COMBINE_FRACTION * rf1)
                s2.transform(element, STEM_COMBINE_FRACTION * rf2)
                self.consumed.update({(p1, "stem"), (p2, "stem")})
                self.interactions.append(Interaction("combine", "stem", p1, p2, element))
            if stem_clash(s1.index, s2.index):
                self._clash(s1, s2, "stem")

            element = branch_combine(b1.index, b2.index)
            if element is not None:
                b1.transform(element, BRANCH_COMBINE_FRACTION * rf1)
                b2.transform(element, BRANCH_COMBINE_FRACTION * rf2)
                self.consumed.update({(p1, "branch"), (p2, "branch")})
                self.interactions.append(Interaction("combine", "branch", p1, p2, element))
            if branch_clash(b1.index, b2.index):
                self._clash(b1, b2, "branch")

            element = half_combine(b1.index, b2.index)
            if element is not None:
                f1, f2 = self._half_fractions(p1, p2, b1.index, b2.index)
                b1.transform(element, f1)
                b2.transform(element, f2)
                self.consumed.update({(p1, "branch"), (p2, "branch")})
                self.interactions.append(Interaction("partial-combine", "branch", p1, p2, element))

    @staticmethod
    def _half_fractions(p1, p2, bi1, bi2) -> tuple[float, float]:
        if frozenset({p1, p2}) in HALF_COMBINE_PAIRS:
            royal1, royal2 = bi1 in ROYAL_BRANCHES, bi2 in ROYAL_BRANCHES
            if royal1 and not royal2:
                return 1 / 6, 2 / 3
            if royal2 and not royal1:
                return 1 / 3, 1 / 6
            return HALF_COMBINE_FRACTION, HALF_COMBINE_FRACTION
        return (BRANCH_COMBINE_FRACTION * resistance(p1, p2, p1),
                BRANCH_COMBINE_FRACTION * resistance(p1, p2, p2))

    # -- overlay pairs ------------------------------------------------

    def overlay_pairs(self):
        damping = self.weights.damping
        for fp in self.overlay_positions:
            for np_ in self.natal_positions:
                strength = self.weights.interaction[np_] * damping
                fs, ns = self.stems[fp], self.stems[np_]
                fb, nb = self.branches[fp], self.branches[np_]

                element = stem_combine(fs.index, ns.index)
                if element is not None and (np_, "stem") not in self.consumed:
                    f = STEM_COMBINE_FRACTION * strength
                    fs.transform(element, f)
                    ns.transform(element, f)
                    self.interactions.append(Interaction("combine", "stem", fp, np_, element))
                if stem_clash(fs.index, ns.index):
                    self._clash(fs, ns, "stem")

                element = branch_combine(fb.index, nb.index)
                if element is not None and (np_, "branch") not in self.consumed:
                    f = BRANCH_COMBINE_FRACTION * strength
                    fb.transform(element, f)
                    nb.transform(element, f)
                    self.interactions.append(Interaction("combine", "branch", fp, np_, element))
                if branch_clash(fb.index, nb.index):
                    self._clash(fb, nb, "branch")

                element = half_combine(fb.index, nb.index)
                if element is not None and (np_, "branch") not in self.consumed:
                    f = HALF_COMBINE_FRACTION * strength
                    fb.transform(element, f)
                    nb.transform(element, f)
                    self.interactions.append(Interaction("partial-combine", "branch", fp, np_, element))

    # -- triads --------------------------------------------------------

    def triads(self):
        branch_of = {p: self.branches[p].index for p in self.positions}
        for members, element, _ in complete_triads(branch_of.values()):
            involved = [p for p in self.positions if branch_of[p] in members]
            overlay = any(self.branches[p].overlay for p in involved)
            f = BRANCH_COMBINE_FRACTION * TRIAD_STRENGTH * (self.weights.damping if overlay else 1.0)
            for p in involved:
                self.branches[p].transform(element, f)
            self.interactions.append(Interaction("triple-combine", "branch", "+".join(involved), None, element))

    def _clash(self, a: Slot, b: Slot, row: str):
        first = a.distribution.dominant() if row == "stem" else branch_profile(a.index).main_element
        second = b.distribution.dominant() if row == "stem" else branch_profile(b.index).main_element
        self.clashes.append(ClashEvent(a.position, b.position, first, second, a.overlay or b.overlay))
        self.interactions.append(Interaction("clash", row, a.position, b.position))

    # -- accumulation ------------------------------------------------

    def slots(self) -> list[Slot]:
        return [self.stems[p] for p in self.positions] + [self.branches[p] for p in self.positions]

    def elements(self) -> dict[Element, float]:
        oh = dict.fromkeys(ELEMENTS, 0.0)
        for slot in self.slots():
            for element, ratio in slot.distribution.items():
                oh[element] += slot.weight * ratio * slot.own
            for element, f in slot.transforms:
                oh[element] += slot.weight * f
        return oh

    def ten_gods(self) -> dict[TenGod, float]:
        sip = dict.fromkeys(TenGod, 0.0)

        def add(element, polarity, amount):
            if amount > 0:
                sip[ten_god(self.day_stem, stem_for(element, polarity).index)] += amount

        for slot in self.slots():
            for element, ratio in slot.distribution.items():
                add(element, slot.polarity, slot.weight * ratio * slot.own)
            for element, f in slot.transforms:
                add(element, slot.polarity, slot.weight * f)
        return sip

    def disruption(self, shares: Mapping[Element, float]) -> float:
        """Total clash penalty as a fraction of the profile, capped."""
        rules = self.weights.disruption
        day_element = heavenly_stem(self.day_stem).element
        total = 0.0
        for event in self.clashes:
            severity = rules.per_event
            if event.first is Element.EARTH and event.second is Element.EARTH:
                severity *= rules.earth_factor
            bridge = mediator(event.first, event.second)
            if bridge is not None and shares[bridge] > rules.bridge_share:
                severity *= rules.bridge_factor
            if shares[day_element] > rules.day_master_share:
                severity *= rules.day_master_factor
            total += severity
        return min(total, rules.cap)


def compute_profile(natal: DiscretePillars, has_time: Optional[bool] = None,
                    overlays: OverlayInput = None,
                    natal_angles: Optional[Mapping[str, float]] = None,
                    overlay_angles: Optional[Mapping[str, float]] = None,
                    weights: Optional[ScoringWeights] = None,
                    strategy: Optional[InterpolationStrategy] = None) -> FortuneProfile:
    """
    Five-element and ten-god profile of a natal chart plus optional luck overlays.

    Args:
        natal: discrete natal chart
        has_time: include the hour pillar; defaults to whether the chart has one
        overlays: {"daeun": idx, "saeun": idx, "wolun": idx} or FortunePillar items
        natal_angles: continuous angle per natal position; replaces the static
            branch distribution with the interpolated one at that angle
        overlay_angles: same, per overlay kind
        weights: scoring weights, the packaged weights file when omitted
        strategy: interpolation used for supplied angles, pairwise when omitted
    """
    if has_time is None:
        has_time = natal.has_time
    if has_time and natal.hour is None:
        raise InvalidInputError("has_time requested for a chart without an hour pillar",
                                computation="compute_profile")

    builder = _ProfileBuilder(natal, has_time, _coerce_overlays(overlays), natal_angles, overlay_angles,
                              weights or load_weights(), strategy or PairwiseStrategy())
    builder.natal_pairs()
    builder.overlay_pairs()
    builder.triads()

    oh = builder.elements()
    shares = percentages(oh)
    penalty = builder.disruption(shares)
    if penalty > 0:
        deduction = penalty * sum(oh.values()) / len(ELEMENTS)
        oh = {e: max(v - deduction, 0.0) for e, v in oh.items()}
    total = sum(oh.values())

    sip = builder.ten_gods()
    sip_percent = percentages(sip)
    grouped = {g: 0.0 for g in TenGodGroup}
    for god, pct in sip_percent.items():
        grouped[god.group] += pct
    grouped = {g: round(v, 1) for g, v in grouped.items()}

    logger.debug("Profile: %d interactions, %d clash events, disruption %.4f",
                 len(builder.interactions), len(builder.clashes), penalty)

    return FortuneProfile(
        oheng_raw=ElementVector.from_mapping(oh),
        oheng_percent=ElementVector.from_mapping(percentages(oh)),
        sipsung_raw=sip,
        sipsung_percent=sip_percent,
        sipsung_grouped=grouped,
        interactions=tuple(builder.interactions),
        total=total,
        disruption=penalty,
        slots=tuple(builder.slots()),
    )
