"""
Five elements, polarity and the ten heavenly stems.

ElementVector replaces ad-hoc element dicts: a fixed five-slot structure,
always iterated wood, fire, earth, metal, water.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Mapping

from saju.errors import require_index


# ============================================================
# FUNDAMENTAL ENUMS
# ============================================================

class Polarity(Enum):
    YANG = "yang"
    YIN = "yin"

    @property
    def korean(self) -> str:
        return "양" if self is Polarity.YANG else "음"


class Element(Enum):
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"

    @property
    def index(self) -> int:
        return ELEMENTS.index(self)

    @property
    def korean(self) -> str:
        return _ELEMENT_KOREAN[self]

    @property
    def hanja(self) -> str:
        return _ELEMENT_HANJA[self]

    @property
    def generates(self) -> "Element":
        return ELEMENTS[(self.index + 1) % 5]

    @property
    def controls(self) -> "Element":
        return ELEMENTS[(self.index + 2) % 5]

    @classmethod
    def from_korean(cls, name: str) -> "Element":
        for element, label in _ELEMENT_KOREAN.items():
            if label == name:
                return element
        raise KeyError(name)


ELEMENTS = list(Element)

_ELEMENT_KOREAN = {
    Element.WOOD: "목", Element.FIRE: "화", Element.EARTH: "토",
    Element.METAL: "금", Element.WATER: "수",
}
_ELEMENT_HANJA = {
    Element.WOOD: "木", Element.FIRE: "火", Element.EARTH: "土",
    Element.METAL: "金", Element.WATER: "水",
}


def mediator(a: Element, b: Element):
    """
    The element bridging a controlling pair along the generate cycle.

    If a controls b, a generates the mediator and the mediator generates b
    (metal -> water -> wood). Returns None when neither controls the other.
    """
    if a.controls is b:
        return a.generates
    if b.controls is a:
        return b.generates
    return None


# ============================================================
# ELEMENT VECTOR
# ============================================================

@dataclass(frozen=True)
class ElementVector:
    wood: float = 0.0
    fire: float = 0.0
    earth: float = 0.0
    metal: float = 0.0
    water: float = 0.0

    @classmethod
    def from_mapping(cls, values: Mapping[Element, float]) -> "ElementVector":
        return cls(**{e.value: float(values.get(e, 0.0)) for e in ELEMENTS})

    @classmethod
    def single(cls, element: Element, amount: float = 1.0) -> "ElementVector":
        return cls(**{element.value: float(amount)})

    @classmethod
    def uniform(cls) -> "ElementVector":
        return cls(0.2, 0.2, 0.2, 0.2, 0.2)

    def __getitem__(self, element: Element) -> float:
        return getattr(self, element.value)

    def __iter__(self) -> Iterator[float]:
        return iter(self.values())

    def __add__(self, other: "ElementVector") -> "ElementVector":
        return ElementVector(*(a + b for a, b in zip(self.values(), other.values())))

    def values(self) -> list[float]:
        return [self.wood, self.fire, self.earth, self.metal, self.water]

    def items(self) -> list[tuple[Element, float]]:
        return list(zip(ELEMENTS, self.values()))

    def total(self) -> float:
        return sum(self.values())

    def scaled(self, factor: float) -> "ElementVector":
        return ElementVector(*(v * factor for v in self.values()))

    def normalized(self, to: float = 1.0) -> "ElementVector":
        """Rescale so components sum to ``to``; all-zero vectors become uniform."""
        total = self.total()
        if total <= 0:
            return ElementVector.uniform().scaled(to)
        return self.scaled(to / total)

    def dominant(self) -> Element:
        return max(self.items(), key=lambda item: item[1])[0]

    def to_dict(self, korean: bool = False) -> dict:
        if korean:
            return {e.korean: v for e, v in self.items()}
        return {e.value: v for e, v in self.items()}


def percentages(values: Mapping, decimals: int = 1) -> dict:
    """
    Convert raw weights to percentages rounded to ``decimals`` places.

    Largest-remainder rounding keeps the rounded values summing to exactly
    100 whenever the input total is positive.
    """
    keys = list(values)
    total = sum(values[k] for k in keys)
    if total <= 0:
        return {k: 0.0 for k in keys}
    scale = 100 * 10 ** decimals
    exact = [values[k] / total * scale for k in keys]
    floors = [math.floor(x) for x in exact]
    short = scale - sum(floors)
    order = sorted(range(len(keys)), key=lambda i: (exact[i] - floors[i], -i), reverse=True)
    for i in order[:short]:
        floors[i] += 1
    return {k: floors[i] / 10 ** decimals for i, k in enumerate(keys)}


# ============================================================
# HEAVENLY STEMS
# ============================================================

@dataclass(frozen=True)
class HeavenlyStem:
    hanja: str
    korean: str
    pinyin: str
    element: Element
    polarity: Polarity
    index: int  # 0-9 in the cycle

    def __str__(self):
        return f"{self.korean}{self.hanja} ({self.polarity.value} {self.element.value})"

    def to_dict(self):
        return {
            "index": self.index,
            "korean": self.korean,
            "hanja": self.hanja,
            "pinyin": self.pinyin,
            "element": self.element.value,
            "polarity": self.polarity.value,
        }


HEAVENLY_STEMS = [
    HeavenlyStem("甲", "갑", "Jia", Element.WOOD, Polarity.YANG, 0),
    HeavenlyStem("乙", "을", "Yi", Element.WOOD, Polarity.YIN, 1),
    HeavenlyStem("丙", "병", "Bing", Element.FIRE, Polarity.YANG, 2),
    HeavenlyStem("丁", "정", "Ding", Element.FIRE, Polarity.YIN, 3),
    HeavenlyStem("戊", "무", "Wu", Element.EARTH, Polarity.YANG, 4),
    HeavenlyStem("己", "기", "Ji", Element.EARTH, Polarity.YIN, 5),
    HeavenlyStem("庚", "경", "Geng", Element.METAL, Polarity.YANG, 6),
    HeavenlyStem("辛", "신", "Xin", Element.METAL, Polarity.YIN, 7),
    HeavenlyStem("壬", "임", "Ren", Element.WATER, Polarity.YANG, 8),
    HeavenlyStem("癸", "계", "Gui", Element.WATER, Polarity.YIN, 9),
]

STEM_BY_KOREAN = {s.korean: s for s in HEAVENLY_STEMS}


def heavenly_stem(index: int) -> HeavenlyStem:
    return HEAVENLY_STEMS[require_index(index, 10, "stem")]


def stem_for(element: Element, polarity: Polarity) -> HeavenlyStem:
    """Inverse of (element, polarity): wood/yang -> 갑, wood/yin -> 을, ..."""
    return HEAVENLY_STEMS[element.index * 2 + (1 if polarity is Polarity.YIN else 0)]
