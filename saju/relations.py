"""
Stem and branch relation tables, plus detection over a chart.

Tables:
- Stem combine (천간합) and stem clash (천간충)
- Branch six-combine (육합), clash (충), half-combine (반합)
- Triad (삼합) and directional (방합) combines
- Punishment (형), break (파), harm (해), self-punishment (자형)

The scorer uses the pair helpers directly; detect_relations() produces the
full descriptive listing for a natal chart, following the hour-day-month-year
adjacency the scorer also uses.
"""

from dataclasses import dataclass
from typing import Optional

from saju.bazi import DiscretePillars
from saju.branches import branch_profile
from saju.elements import Element, heavenly_stem


# ============================================================
# STEM RELATIONS
# ============================================================

# (stem1, stem2): resulting element
STEM_COMBINES = {
    (0, 5): Element.EARTH,   # 甲己
    (1, 6): Element.METAL,   # 乙庚
    (2, 7): Element.WATER,   # 丙辛
    (3, 8): Element.WOOD,    # 丁壬
    (4, 9): Element.FIRE,    # 戊癸
}

STEM_CLASHES = [
    (0, 6),   # 甲庚
    (1, 7),   # 乙辛
    (2, 8),   # 丙壬
    (3, 9),   # 丁癸
]


# ============================================================
# BRANCH RELATIONS
# ============================================================

SIX_COMBINES = {
    (0, 1): Element.EARTH,    # 子丑
    (2, 11): Element.WOOD,    # 寅亥
    (3, 10): Element.FIRE,    # 卯戌
    (4, 9): Element.METAL,    # 辰酉
    (5, 8): Element.WATER,    # 巳申
    (6, 7): Element.FIRE,     # 午未
}

SIX_CLASHES = [
    (0, 6),   # 子午
    (1, 7),   # 丑未
    (2, 8),   # 寅申
    (3, 9),   # 卯酉
    (4, 10),  # 辰戌
    (5, 11),  # 巳亥
]

# Half combines: a royal branch with the birth or storage branch of its triad
HALF_COMBINES = {
    (8, 0): Element.WATER,    # 申子
    (0, 4): Element.WATER,    # 子辰
    (11, 3): Element.WOOD,    # 亥卯
    (3, 7): Element.WOOD,     # 卯未
    (2, 6): Element.FIRE,     # 寅午
    (6, 10): Element.FIRE,    # 午戌
    (5, 9): Element.METAL,    # 巳酉
    (9, 1): Element.METAL,    # 酉丑
}

# Royal branches (왕지): the cardinal centre of each triad
ROYAL_BRANCHES = frozenset({0, 3, 6, 9})

TRIAD_COMBINES = {
    (8, 0, 4): Element.WATER,   # 申子辰
    (11, 3, 7): Element.WOOD,   # 亥卯未
    (2, 6, 10): Element.FIRE,   # 寅午戌
    (5, 9, 1): Element.METAL,   # 巳酉丑
}

DIRECTIONAL_COMBINES = {
    (2, 3, 4): Element.WOOD,    # 寅卯辰 east
    (5, 6, 7): Element.FIRE,    # 巳午未 south
    (8, 9, 10): Element.METAL,  # 申酉戌 west
    (11, 0, 1): Element.WATER,  # 亥子丑 north
}

PUNISHMENTS = {
    (2, 5): "ungrateful",     # 寅巳
    (5, 8): "ungrateful",     # 巳申
    (2, 8): "ungrateful",     # 寅申
    (1, 10): "uncivilized",   # 丑戌
    (10, 7): "uncivilized",   # 戌未
    (1, 7): "uncivilized",    # 丑未
    (0, 3): "rude",           # 子卯
}

TRIPLE_PUNISHMENTS = {
    (2, 5, 8): "ungrateful",
    (1, 10, 7): "uncivilized",
}

BREAKS = [
    (0, 9), (1, 4), (2, 11), (3, 6), (5, 8), (7, 10),
]

HARMS = [
    (0, 7), (1, 6), (2, 5), (3, 4), (8, 11), (9, 10),
]

# 辰 午 酉 亥 punish themselves when doubled
SELF_PUNISHMENT = frozenset({4, 6, 9, 11})


# ============================================================
# PAIR LOOKUPS
# ============================================================

def _lookup(table: dict, a: int, b: int):
    return table.get((a, b), table.get((b, a)))


def _listed(pairs, a: int, b: int) -> bool:
    return (a, b) in pairs or (b, a) in pairs


def stem_combine(a: int, b: int) -> Optional[Element]:
    return _lookup(STEM_COMBINES, a, b)


def stem_clash(a: int, b: int) -> bool:
    return _listed(STEM_CLASHES, a, b)


def branch_combine(a: int, b: int) -> Optional[Element]:
    return _lookup(SIX_COMBINES, a, b)


def branch_clash(a: int, b: int) -> bool:
    return _listed(SIX_CLASHES, a, b)


def half_combine(a: int, b: int) -> Optional[Element]:
    return _lookup(HALF_COMBINES, a, b)


def punishment(a: int, b: int) -> Optional[str]:
    if a == b and a in SELF_PUNISHMENT:
        return "self"
    return _lookup(PUNISHMENTS, a, b)


def complete_triads(branches) -> list[tuple[tuple, Element, str]]:
    """Triad and directional groups whose three members all appear in ``branches``."""
    present = set(branches)
    found = []
    for members, element in TRIAD_COMBINES.items():
        if present.issuperset(members):
            found.append((members, element, "triad"))
    for members, element in DIRECTIONAL_COMBINES.items():
        if present.issuperset(members):
            found.append((members, element, "directional"))
    return found


# ============================================================
# CHART-LEVEL DETECTION
# ============================================================

@dataclass(frozen=True)
class Relation:
    category: str              # combine / clash / punishment / break / harm
    row: str                   # stem / branch
    positions: tuple
    description: str
    element: Optional[Element] = None

    def to_dict(self):
        return {
            "category": self.category,
            "row": self.row,
            "positions": list(self.positions),
            "description": self.description,
            "element": self.element.value if self.element else None,
        }


def _stem_label(a: int, b: int) -> str:
    sa, sb = heavenly_stem(a), heavenly_stem(b)
    return f"{sa.korean}{sa.hanja}{sb.korean}{sb.hanja}"


def _branch_label(a: int, b: int) -> str:
    ba, bb = branch_profile(a), branch_profile(b)
    return f"{ba.korean}{ba.hanja}{bb.korean}{bb.hanja}"


def pair_relations(stem_a: int, branch_a: int, stem_b: int, branch_b: int,
                   positions: tuple) -> list[Relation]:
    """Every stem and branch relation between two pillars."""
    found = []

    el = stem_combine(stem_a, stem_b)
    if el is not None:
        found.append(Relation("combine", "stem", positions,
                              f"{_stem_label(stem_a, stem_b)}합({el.korean})", el))
    if stem_clash(stem_a, stem_b):
        found.append(Relation("clash", "stem", positions, f"{_stem_label(stem_a, stem_b)}충"))

    label = _branch_label(branch_a, branch_b)
    el = branch_combine(branch_a, branch_b)
    if el is not None:
        found.append(Relation("combine", "branch", positions, f"{label}합({el.korean})", el))
    el = half_combine(branch_a, branch_b)
    if el is not None:
        found.append(Relation("combine", "branch", positions, f"{label}반합({el.korean})", el))
    if branch_clash(branch_a, branch_b):
        found.append(Relation("clash", "branch", positions, f"{label}충"))
    kind = punishment(branch_a, branch_b)
    if kind == "self":
        found.append(Relation("punishment", "branch", positions, f"{label}자형"))
    elif kind is not None:
        found.append(Relation("punishment", "branch", positions, f"{label}형({kind})"))
    if _listed(BREAKS, branch_a, branch_b):
        found.append(Relation("break", "branch", positions, f"{label}파"))
    if _listed(HARMS, branch_a, branch_b):
        found.append(Relation("harm", "branch", positions, f"{label}해"))
    return found


def detect_relations(chart: DiscretePillars) -> list[Relation]:
    """
    Natal relations between adjacent pillars and within consecutive triples.

    Adjacent pairs are hour-day, day-month, month-year (hour omitted when the
    birth time is unknown). Triad, directional and triple-punishment groups
    are checked over each run of three consecutive pillars.
    """
    positions = chart.positions
    stems = {p: chart.pillar(p).index % 10 for p in positions}
    branches = {p: chart.pillar(p).index % 12 for p in positions}

    relations = []
    for p1, p2 in zip(positions, positions[1:]):
        relations.extend(pair_relations(stems[p1], branches[p1], stems[p2], branches[p2], (p1, p2)))

    for triple in zip(positions, positions[1:], positions[2:]):
        present = [branches[p] for p in triple]
        for members, element, kind in complete_triads(present):
            prefix = "삼합" if kind == "triad" else "방합"
            relations.append(Relation("combine", "branch", triple, f"{prefix}{element.korean}국", element))
        for members, kind in TRIPLE_PUNISHMENTS.items():
            if set(present).issuperset(members):
                relations.append(Relation("punishment", "branch", triple, f"삼형({kind})"))

    return relations


def detect_overlay_relations(chart: DiscretePillars, overlay_index: int, label: str) -> list[Relation]:
    """Relations between one overlay pillar (decade, year or month luck) and each natal pillar."""
    s, b = overlay_index % 10, overlay_index % 12
    relations = []
    for p in chart.positions:
        idx = chart.pillar(p).index
        relations.extend(pair_relations(s, b, idx % 10, idx % 12, (label, p)))
    return relations


def describe(relations: list[Relation]) -> list[str]:
    return [f"{'-'.join(r.positions)}: {r.description}" for r in relations]
