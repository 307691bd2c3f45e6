"""
Static profiles for the twelve earthly branches.

Each branch owns a 30-degree arc centred at ``index * 30``. The profile
carries its five-element ratios (summing to 1.0), its hidden stems with
integer proportions summing to 10, and the categorical data used by the
relation tables. This table is authoritative for scoring; the continuous
curves in ``saju.continuous`` reproduce it exactly at the arc centres.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from saju.elements import Element, ElementVector, HeavenlyStem, Polarity, heavenly_stem
from saju.errors import require_index


class BranchRole(Enum):
    DOHWA = "dohwa"      # 도화 - cardinal, single pure element
    HWAGAE = "hwagae"    # 화개 - storage, closes a season
    YEOKMA = "yeokma"    # 역마 - movement, opens a season


class HiddenPhase(Enum):
    INITIAL = "initial"  # 초기
    MIDDLE = "middle"    # 중기
    MAIN = "main"        # 본기


@dataclass(frozen=True)
class HiddenStem:
    stem_index: int
    phase: HiddenPhase
    ratio: int

    @property
    def stem(self) -> HeavenlyStem:
        return heavenly_stem(self.stem_index)


@dataclass(frozen=True)
class BranchProfile:
    index: int
    korean: str
    hanja: str
    animal: str
    ratios: ElementVector
    hidden_stems: tuple
    role: BranchRole
    season: str
    samhap_group: Element       # triad the branch belongs to
    samhap_position: str        # saeng / wang / go
    banghap_group: str          # compass direction of the seasonal group
    purity: float
    stability: float
    intensity: float

    @property
    def angle(self) -> float:
        return self.index * 30.0

    @property
    def main_stem(self) -> HeavenlyStem:
        for hidden in self.hidden_stems:
            if hidden.phase is HiddenPhase.MAIN:
                return hidden.stem
        return self.hidden_stems[0].stem

    @property
    def main_element(self) -> Element:
        return self.main_stem.element

    @property
    def polarity(self) -> Polarity:
        """Branch polarity as used for ten-god attribution: that of its main stem."""
        return self.main_stem.polarity

    def __str__(self):
        return f"{self.korean}{self.hanja} ({self.animal})"

    def to_dict(self):
        return {
            "index": self.index,
            "korean": self.korean,
            "hanja": self.hanja,
            "animal": self.animal,
            "angle": self.angle,
            "ratios": self.ratios.to_dict(),
            "hidden_stems": [
                {
                    "stem": h.stem.korean,
                    "phase": h.phase.value,
                    "ratio": h.ratio,
                    "element": h.stem.element.value,
                }
                for h in self.hidden_stems
            ],
            "role": self.role.value,
            "season": self.season,
            "samhap_group": self.samhap_group.value,
            "samhap_position": self.samhap_position,
            "banghap_group": self.banghap_group,
            "purity": self.purity,
            "stability": self.stability,
            "intensity": self.intensity,
        }


def _hidden(*entries) -> tuple:
    phases = {"i": HiddenPhase.INITIAL, "m": HiddenPhase.MIDDLE, "b": HiddenPhase.MAIN}
    return tuple(HiddenStem(stem, phases[p], r) for stem, p, r in entries)


def _ratios(wood=0.0, fire=0.0, earth=0.0, metal=0.0, water=0.0) -> ElementVector:
    return ElementVector(wood, fire, earth, metal, water)


# ============================================================
# THE TWELVE BRANCHES
# ============================================================

# Hidden stems are (stem_index, phase, ratio); stem 0 = 갑 ... 9 = 계.
BRANCH_PROFILES = [
    BranchProfile(0, "자", "子", "Rat", _ratios(water=1.0),
                  _hidden((8, "i", 3), (9, "b", 7)),
                  BranchRole.DOHWA, "winter", Element.WATER, "wang", "north", 1.0, 0.5, 1.0),
    BranchProfile(1, "축", "丑", "Ox", _ratios(earth=0.6, metal=0.1, water=0.3),
                  _hidden((9, "i", 3), (7, "m", 1), (5, "b", 6)),
                  BranchRole.HWAGAE, "winter", Element.METAL, "go", "north", 0.6, 1.0, 0.0),
    BranchProfile(2, "인", "寅", "Tiger", _ratios(wood=0.6, fire=0.2, earth=0.2),
                  _hidden((4, "i", 2), (2, "m", 2), (0, "b", 6)),
                  BranchRole.YEOKMA, "spring", Element.FIRE, "saeng", "east", 0.6, 0.0, 0.5),
    BranchProfile(3, "묘", "卯", "Rabbit", _ratios(wood=1.0),
                  _hidden((0, "i", 3), (1, "b", 7)),
                  BranchRole.DOHWA, "spring", Element.WOOD, "wang", "east", 1.0, 0.5, 1.0),
    BranchProfile(4, "진", "辰", "Dragon", _ratios(wood=0.3, earth=0.6, water=0.1),
                  _hidden((1, "i", 3), (9, "m", 1), (4, "b", 6)),
                  BranchRole.HWAGAE, "spring", Element.WATER, "go", "east", 0.6, 1.0, 0.0),
    BranchProfile(5, "사", "巳", "Snake", _ratios(fire=0.6, earth=0.2, metal=0.2),
                  _hidden((4, "i", 2), (6, "m", 2), (2, "b", 6)),
                  BranchRole.YEOKMA, "summer", Element.METAL, "saeng", "south", 0.6, 0.0, 0.5),
    BranchProfile(6, "오", "午", "Horse", _ratios(fire=1.0),
                  _hidden((2, "i", 3), (3, "b", 7)),
                  BranchRole.DOHWA, "summer", Element.FIRE, "wang", "south", 1.0, 0.5, 1.0),
    BranchProfile(7, "미", "未", "Goat", _ratios(wood=0.1, fire=0.3, earth=0.6),
                  _hidden((3, "i", 3), (1, "m", 1), (5, "b", 6)),
                  BranchRole.HWAGAE, "summer", Element.WOOD, "go", "south", 0.6, 1.0, 0.0),
    BranchProfile(8, "신", "申", "Monkey", _ratios(earth=0.2, metal=0.6, water=0.2),
                  _hidden((4, "i", 2), (8, "m", 2), (6, "b", 6)),
                  BranchRole.YEOKMA, "autumn", Element.WATER, "saeng", "west", 0.6, 0.0, 0.5),
    BranchProfile(9, "유", "酉", "Rooster", _ratios(metal=1.0),
                  _hidden((6, "i", 3), (7, "b", 7)),
                  BranchRole.DOHWA, "autumn", Element.METAL, "wang", "west", 1.0, 0.5, 1.0),
    BranchProfile(10, "술", "戌", "Dog", _ratios(fire=0.1, earth=0.6, metal=0.3),
                  _hidden((7, "i", 3), (3, "m", 1), (4, "b", 6)),
                  BranchRole.HWAGAE, "autumn", Element.FIRE, "go", "west", 0.6, 1.0, 0.0),
    BranchProfile(11, "해", "亥", "Pig", _ratios(wood=0.2, earth=0.2, water=0.6),
                  _hidden((4, "i", 2), (0, "m", 2), (8, "b", 6)),
                  BranchRole.YEOKMA, "winter", Element.WOOD, "saeng", "north", 0.6, 0.0, 0.5),
]

BRANCH_BY_KOREAN = {b.korean: b for b in BRANCH_PROFILES}


def branch_profile(index: int) -> BranchProfile:
    return BRANCH_PROFILES[require_index(index, 12, "branch")]


# ============================================================
# PAIRWISE BLENDING ON THE CIRCLE
# ============================================================

def raised_cosine(t: float) -> float:
    """w(t) = 0.5 - 0.5*cos(t*pi): 0 at t=0, 1 at t=1, flat at both ends."""
    return 0.5 - 0.5 * math.cos(t * math.pi)


def adjacent_branches(angle: float) -> tuple[int, int, float]:
    """Return (left_index, right_index, weight_of_right) for an angle in degrees."""
    theta = angle % 360.0
    left = int(theta // 30) % 12
    t = (theta - left * 30) / 30
    return left, (left + 1) % 12, raised_cosine(t)


@dataclass(frozen=True)
class BlendedBranchProfile:
    angle: float
    dominant: BranchProfile
    ratios: ElementVector
    purity: float
    stability: float
    intensity: float
    influences: tuple

    def to_dict(self):
        return {
            "angle": self.angle,
            "dominant": self.dominant.korean,
            "ratios": self.ratios.to_dict(),
            "purity": self.purity,
            "stability": self.stability,
            "intensity": self.intensity,
            "role": self.dominant.role.value,
            "season": self.dominant.season,
            "influences": list(self.influences),
        }


def blended_branch_profile(angle: float, ratios: Optional[ElementVector] = None) -> BlendedBranchProfile:
    """
    Interpolate the two branches adjacent to ``angle``.

    Scalars are blended with the raised-cosine weight; categorical data comes
    from whichever neighbour dominates. ``ratios`` overrides the blended
    element ratios when a different interpolation strategy produced them.
    """
    left, right, w_right = adjacent_branches(angle)
    w_left = 1.0 - w_right
    lp, rp = BRANCH_PROFILES[left], BRANCH_PROFILES[right]

    if ratios is None:
        ratios = lp.ratios.scaled(w_left) + rp.ratios.scaled(w_right)

    influences = [0.0] * 12
    influences[left] = w_left
    influences[right] += w_right

    return BlendedBranchProfile(
        angle=angle % 360.0,
        dominant=lp if w_left >= w_right else rp,
        ratios=ratios,
        purity=w_left * lp.purity + w_right * rp.purity,
        stability=w_left * lp.stability + w_right * rp.stability,
        intensity=w_left * lp.intensity + w_right * rp.intensity,
        influences=tuple(influences),
    )
