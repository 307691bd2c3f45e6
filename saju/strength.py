"""
Day-master strength (신강/신약) and the supporting elements (용신).

The verdict combines month support (득령: the day master reaches a
supporting twelve stage in the month branch) with the ally ratio of the
weighted ten gods (peers + resource against output + wealth + officer).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from saju.bazi import SUPPORTING_STAGES, DiscretePillars, TenGodGroup, TwelveStage, twelve_stage
from saju.elements import ELEMENTS, Element, mediator
from saju.scorer import FortuneProfile, compute_profile

ALLY_GROUPS = (TenGodGroup.PEERS, TenGodGroup.RESOURCE)
DEVELOPED_SHARE = 20.0


class Strength(Enum):
    STRONG = "신강"
    WEAK = "신약"
    BALANCED = "중화"


@dataclass(frozen=True)
class StrengthAssessment:
    strength: Strength
    day_master: Element
    month_support: bool
    month_stage: TwelveStage
    ratio: float
    groups: dict                      # TenGodGroup -> weighted amount
    supporting_element: Element       # 억부용신
    mediating_element: Optional[Element]  # 통관용신

    @property
    def allies(self) -> float:
        return sum(self.groups[g] for g in ALLY_GROUPS)

    @property
    def opponents(self) -> float:
        return sum(v for g, v in self.groups.items() if g not in ALLY_GROUPS)

    def to_dict(self):
        return {
            "strength": self.strength.value,
            "day_master": self.day_master.value,
            "month_support": self.month_support,
            "month_stage": self.month_stage.value,
            "ratio": round(self.ratio * 100),
            "allies": round(self.allies, 1),
            "opponents": round(self.opponents, 1),
            "groups": {g.value: round(v, 1) for g, v in self.groups.items()},
            "supporting_element": self.supporting_element.value,
            "mediating_element": self.mediating_element.value if self.mediating_element else None,
        }


def verdict(month_support: bool, ratio: float) -> Strength:
    if month_support and ratio >= 0.4:
        return Strength.STRONG
    if not month_support and ratio <= 0.5:
        return Strength.WEAK
    if ratio > 0.55:
        return Strength.STRONG
    if ratio < 0.4:
        return Strength.WEAK
    return Strength.BALANCED


def supporting_element(shares: dict, day_master: Element, strength: Strength) -> Element:
    """
    Strong charts drain through the weakest of output, wealth and officer;
    weak charts lean on the weaker of resource and the day master's own
    element; balanced charts top up the weakest element overall.
    """
    if strength is Strength.STRONG:
        officer = next(e for e in ELEMENTS if e.controls is day_master)
        candidates = [day_master.generates, day_master.controls, officer]
    elif strength is Strength.WEAK:
        resource = next(e for e in ELEMENTS if e.generates is day_master)
        candidates = [resource, day_master]
    else:
        candidates = ELEMENTS
    return min(candidates, key=lambda e: shares[e])


def mediating_element(shares: dict) -> Optional[Element]:
    ranked = sorted(ELEMENTS, key=lambda e: shares[e], reverse=True)
    first, second = ranked[0], ranked[1]
    if shares[first] < DEVELOPED_SHARE or shares[second] < DEVELOPED_SHARE:
        return None
    bridge = mediator(first, second)
    if bridge is None or shares[bridge] >= DEVELOPED_SHARE:
        return None
    return bridge


def assess_strength(discrete: DiscretePillars, profile: Optional[FortuneProfile] = None) -> StrengthAssessment:
    profile = profile or compute_profile(discrete)
    day_stem = discrete.day.index % 10
    day_master = discrete.day_master.element

    stage = twelve_stage(day_stem, discrete.month.index % 12)
    month_support = stage in SUPPORTING_STAGES

    groups = {g: 0.0 for g in TenGodGroup}
    for god, amount in profile.sipsung_raw.items():
        groups[god.group] += amount
    allies = sum(groups[g] for g in ALLY_GROUPS)
    total = sum(groups.values()) or 1.0
    ratio = allies / total

    shares = {e: profile.oheng_percent[e] for e in ELEMENTS}
    strength = verdict(month_support, ratio)
    return StrengthAssessment(
        strength=strength,
        day_master=day_master,
        month_support=month_support,
        month_stage=stage,
        ratio=ratio,
        groups=groups,
        supporting_element=supporting_element(shares, day_master, strength),
        mediating_element=mediating_element(shares),
    )
