"""
Sexagenary (Four Pillars) calculator.

Handles:
- Gregorian birth moment (KST civil time) to year/month/day/hour pillars
- Ten Gods classification against the day master
- Twelve Stages (십이운성) of a stem in a branch, and the 4x4 stage matrix
- Hidden stem breakdown with ten-god attribution

Year and month pillars follow the solar terms, not the civil calendar: the
year opens at 입춘 and each month at its major term. Day pillars roll over
at 23:00 (자시 belongs to the next day).
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from saju.branches import BranchProfile, branch_profile
from saju.elements import Element, HeavenlyStem, heavenly_stem
from saju.errors import IndexOutOfRangeError, require_index
from saju.solar_terms import SolarTermResolver, TermBoundary, default_resolver

logger = logging.getLogger(__name__)


# ============================================================
# SEXAGENARY CYCLE
# ============================================================

REF_DATE = date(1900, 1, 1)   # 甲戌 day
REF_DAY_INDEX = 10
REF_YEAR = 1984               # 甲子 year
REF_YEAR_INDEX = 0

POSITIONS = ("year", "month", "day", "hour")
# Adjacency order used by relation detection: hour-day, day-month, month-year
CHART_ORDER = ("hour", "day", "month", "year")


def sexagenary_index(stem_index: int, branch_index: int) -> int:
    """Index in the 60-cycle for a stem/branch pair of equal parity."""
    require_index(stem_index, 10, "stem")
    require_index(branch_index, 12, "branch")
    if (stem_index - branch_index) % 2:
        raise IndexOutOfRangeError("stem and branch differ in parity", computation="sexagenary_index",
                                   stem=stem_index, branch=branch_index)
    return (6 * stem_index - 5 * branch_index) % 60


def sexagenary_name(index: int, hanja: bool = False) -> str:
    require_index(index, 60, "sexagenary")
    stem = heavenly_stem(index % 10)
    branch = branch_profile(index % 12)
    if hanja:
        return stem.hanja + branch.hanja
    return stem.korean + branch.korean


def year_index(saju_year: int) -> int:
    return (REF_YEAR_INDEX + (saju_year - REF_YEAR)) % 60


def day_index(day: date) -> int:
    return (REF_DAY_INDEX + (day - REF_DATE).days) % 60


def hour_branch(hour: int, minute: int = 0) -> int:
    """
    Two-hour branch for a clock time.

    23:00-00:59 = 자 (0), 01:00-02:59 = 축 (1), ... 21:00-22:59 = 해 (11).
    """
    total = hour * 60 + minute
    if total >= 23 * 60 or total < 60:
        return 0
    return ((total + 60) // 120) % 12


def hour_index(day_stem_index: int, branch_index: int) -> int:
    # Five Rats rule: 甲/己 days start at 甲子, 乙/庚 at 丙子, ...
    stem_index = ((day_stem_index % 5) * 2 + branch_index) % 10
    return sexagenary_index(stem_index, branch_index)


def month_index(year_stem_index: int, month_number: int) -> int:
    # Five Tigers rule: 甲/己 years open at 丙寅, 乙/庚 at 戊寅, ...
    start = ((year_stem_index % 5) * 2 + 2) % 10
    stem_index = (start + month_number - 1) % 10
    return sexagenary_index(stem_index, (month_number + 1) % 12)


# ============================================================
# TEN GODS (십성)
# ============================================================

class TenGodGroup(Enum):
    PEERS = "비겁"
    OUTPUT = "식상"
    WEALTH = "재성"
    OFFICER = "관성"
    RESOURCE = "인성"


class TenGod(Enum):
    BIGYEON = "비견"
    GEOPJAE = "겁재"
    SIKSIN = "식신"
    SANGGWAN = "상관"
    PYEONJAE = "편재"
    JEONGJAE = "정재"
    PYEONGWAN = "편관"
    JEONGGWAN = "정관"
    PYEONIN = "편인"
    JEONGIN = "정인"

    @property
    def group(self) -> TenGodGroup:
        return list(TenGodGroup)[list(TenGod).index(self) // 2]

    @property
    def english(self) -> str:
        return _TEN_GOD_ENGLISH[self]


_TEN_GOD_ENGLISH = {
    TenGod.BIGYEON: "Companion",
    TenGod.GEOPJAE: "Rob Wealth",
    TenGod.SIKSIN: "Eating God",
    TenGod.SANGGWAN: "Hurting Officer",
    TenGod.PYEONJAE: "Indirect Wealth",
    TenGod.JEONGJAE: "Direct Wealth",
    TenGod.PYEONGWAN: "Seven Killings",
    TenGod.JEONGGWAN: "Direct Officer",
    TenGod.PYEONIN: "Indirect Resource",
    TenGod.JEONGIN: "Direct Resource",
}

TEN_GODS = {
    # (relationship, same_polarity): ten god
    ("same", True): TenGod.BIGYEON,
    ("same", False): TenGod.GEOPJAE,
    ("i_produce", True): TenGod.SIKSIN,
    ("i_produce", False): TenGod.SANGGWAN,
    ("i_control", True): TenGod.PYEONJAE,
    ("i_control", False): TenGod.JEONGJAE,
    ("controls_me", True): TenGod.PYEONGWAN,
    ("controls_me", False): TenGod.JEONGGWAN,
    ("produces_me", True): TenGod.PYEONIN,
    ("produces_me", False): TenGod.JEONGIN,
}


def element_relationship(day_master_element: Element, other_element: Element) -> str:
    """Determine the elemental relationship from the day master's perspective."""
    if day_master_element is other_element:
        return "same"
    if day_master_element.generates is other_element:
        return "i_produce"
    if day_master_element.controls is other_element:
        return "i_control"
    if other_element.controls is day_master_element:
        return "controls_me"
    return "produces_me"


def ten_god(day_stem_index: int, other_stem_index: int) -> TenGod:
    day_master = heavenly_stem(day_stem_index)
    other = heavenly_stem(other_stem_index)
    relationship = element_relationship(day_master.element, other.element)
    return TEN_GODS[(relationship, day_master.polarity is other.polarity)]


# ============================================================
# TWELVE STAGES (십이운성)
# ============================================================

class TwelveStage(Enum):
    JANGSAENG = "장생"
    MOGYOK = "목욕"
    GWANDAE = "관대"
    GEONROK = "건록"
    JEWANG = "제왕"
    SOE = "쇠"
    BYEONG = "병"
    SA = "사"
    MYO = "묘"
    JEOL = "절"
    TAE = "태"
    YANG = "양"

    @property
    def energy(self) -> float:
        return STAGE_ENERGY[self]

    @property
    def phase(self) -> str:
        if self.energy >= 0.6:
            return "peak"
        if self.energy >= 0.3:
            return "growth"
        return "decline"


STAGE_ENERGY = {
    TwelveStage.JANGSAENG: 0.50,
    TwelveStage.MOGYOK: 0.40,
    TwelveStage.GWANDAE: 0.60,
    TwelveStage.GEONROK: 0.80,
    TwelveStage.JEWANG: 1.00,
    TwelveStage.SOE: 0.35,
    TwelveStage.BYEONG: 0.25,
    TwelveStage.SA: 0.15,
    TwelveStage.MYO: 0.05,
    TwelveStage.JEOL: 0.10,
    TwelveStage.TAE: 0.20,
    TwelveStage.YANG: 0.30,
}

# Branch of 장생 for each stem: 甲 亥, 乙 午, 丙/戊 寅, 丁/己 酉, 庚 巳, 辛 子, 壬 申, 癸 卯
JANGSAENG_BRANCH = [11, 6, 2, 9, 2, 9, 5, 0, 8, 3]

# Stages counted as the day master "holding the season" (득령)
SUPPORTING_STAGES = frozenset({
    TwelveStage.JANGSAENG, TwelveStage.MOGYOK, TwelveStage.GWANDAE,
    TwelveStage.GEONROK, TwelveStage.JEWANG,
})


def twelve_stage(stem_index: int, branch_index: int) -> TwelveStage:
    """Yang stems walk forward from their 장생 branch, yin stems walk backward."""
    require_index(stem_index, 10, "stem")
    require_index(branch_index, 12, "branch")
    start = JANGSAENG_BRANCH[stem_index]
    if stem_index % 2 == 0:
        position = (branch_index - start) % 12
    else:
        position = (start - branch_index) % 12
    return list(TwelveStage)[position]


# ============================================================
# PILLARS
# ============================================================

@dataclass(frozen=True)
class Pillar:
    position: str
    index: int
    angle: Optional[float] = None

    def __post_init__(self):
        require_index(self.index, 60, f"{self.position} pillar")

    @property
    def stem(self) -> HeavenlyStem:
        return heavenly_stem(self.index % 10)

    @property
    def branch(self) -> BranchProfile:
        return branch_profile(self.index % 12)

    @property
    def name(self) -> str:
        return sexagenary_name(self.index)

    def __str__(self):
        return f"{self.position}: {self.name} ({sexagenary_name(self.index, hanja=True)})"

    def to_dict(self):
        return {
            "position": self.position,
            "index": self.index,
            "name": self.name,
            "hanja": sexagenary_name(self.index, hanja=True),
            "stem": self.stem.to_dict(),
            "branch": {
                "index": self.branch.index,
                "korean": self.branch.korean,
                "hanja": self.branch.hanja,
                "animal": self.branch.animal,
            },
            "angle": self.angle,
        }


@dataclass(frozen=True)
class HiddenStemReading:
    stem: HeavenlyStem
    phase: str
    ratio: int
    ten_god: TenGod

    def to_dict(self):
        return {
            "stem": self.stem.korean,
            "element": self.stem.element.value,
            "phase": self.phase,
            "ratio": self.ratio,
            "ten_god": self.ten_god.value,
        }


@dataclass(frozen=True)
class PillarReading:
    """Day-master-relative reading of one pillar."""
    stem_god: Optional[TenGod]     # None for the day stem itself
    branch_god: TenGod             # via the branch's main hidden stem
    stage: TwelveStage             # day master in this branch
    self_stage: TwelveStage        # the pillar's own stem in this branch
    hidden: tuple

    def to_dict(self):
        return {
            "stem_god": self.stem_god.value if self.stem_god else "일간",
            "branch_god": self.branch_god.value,
            "stage": self.stage.value,
            "self_stage": self.self_stage.value,
            "hidden": [h.to_dict() for h in self.hidden],
        }


def read_pillar(pillar: Pillar, day_stem_index: int) -> PillarReading:
    si, bi = pillar.index % 10, pillar.index % 12
    branch = pillar.branch
    hidden = tuple(
        HiddenStemReading(h.stem, h.phase.value, h.ratio, ten_god(day_stem_index, h.stem_index))
        for h in branch.hidden_stems
    )
    return PillarReading(
        stem_god=None if pillar.position == "day" else ten_god(day_stem_index, si),
        branch_god=ten_god(day_stem_index, branch.main_stem.index),
        stage=twelve_stage(day_stem_index, bi),
        self_stage=twelve_stage(si, bi),
        hidden=hidden,
    )


@dataclass(frozen=True)
class DiscretePillars:
    """
    Discrete chart for one birth moment.

    ``hour`` is None when the birth time is unknown; every consumer then works
    over day, month and year only. Term fields are None for charts built
    directly from indices.
    """
    year: Pillar
    month: Pillar
    day: Pillar
    hour: Optional[Pillar] = None
    birth: Optional[datetime] = None
    saju_year: Optional[int] = None
    month_number: Optional[int] = None
    current_term: Optional[TermBoundary] = None
    next_term: Optional[TermBoundary] = None
    year_start: Optional[datetime] = None
    year_end: Optional[datetime] = None
    readings: dict = field(default_factory=dict, compare=False)

    @classmethod
    def from_indices(cls, year: int, month: int, day: int, hour: Optional[int] = None) -> "DiscretePillars":
        pillars = {
            "year": Pillar("year", year),
            "month": Pillar("month", month),
            "day": Pillar("day", day),
            "hour": Pillar("hour", hour) if hour is not None else None,
        }
        readings = {p: read_pillar(pl, day % 10) for p, pl in pillars.items() if pl is not None}
        return cls(readings=readings, **pillars)

    @property
    def has_time(self) -> bool:
        return self.hour is not None

    @property
    def day_master(self) -> HeavenlyStem:
        return self.day.stem

    @property
    def positions(self) -> list[str]:
        """Present positions in chart order (hour, day, month, year)."""
        return [p for p in CHART_ORDER if self.pillar(p) is not None]

    def pillar(self, position: str) -> Optional[Pillar]:
        return getattr(self, position)

    def indices(self) -> dict[str, int]:
        return {p: self.pillar(p).index for p in self.positions}

    def to_dict(self):
        data = {
            "pillars": {p: self.pillar(p).to_dict() for p in self.positions},
            "readings": {p: r.to_dict() for p, r in self.readings.items()},
            "has_time": self.has_time,
            "saju_year": self.saju_year,
            "month_number": self.month_number,
        }
        if self.birth is not None:
            data["birth"] = self.birth.isoformat()
        if self.current_term is not None:
            data["current_term"] = self.current_term.to_dict()
            data["next_term"] = self.next_term.to_dict()
        if self.year_start is not None:
            data["year_start"] = self.year_start.isoformat()
            data["year_end"] = self.year_end.isoformat()
        return data


def compute_pillars(year: int, month: int, day: int,
                    hour: Optional[int] = None, minute: Optional[int] = None,
                    resolver: Optional[SolarTermResolver] = None) -> DiscretePillars:
    """
    Compute the four pillars for a KST civil birth moment.

    Inputs are assumed valid (see BirthMoment). With no hour, term boundary
    comparisons use 12:00 and the hour pillar is omitted.

    Args:
        year, month, day: Gregorian civil date
        hour, minute: clock time, or None when unknown
        resolver: solar term resolver; the process default when omitted
    """
    resolver = resolver or default_resolver
    has_time = hour is not None
    h = hour if has_time else 12
    mi = (minute or 0) if has_time else 0
    birth = datetime(year, month, day, h, mi)

    # Day pillar: 23:00 and later belongs to the next day
    saju_date = birth.date() + timedelta(days=1) if h >= 23 else birth.date()
    d_idx = day_index(saju_date)

    # Year pillar: opens at 입춘
    saju_year = year - 1 if birth < resolver.start_of_spring(year) else year
    y_idx = year_index(saju_year)

    # Month pillar: containing interval of the major terms
    boundaries = resolver.month_boundaries(saju_year)
    current, following = boundaries[0], boundaries[1]
    for lo, hi in zip(boundaries, boundaries[1:]):
        if lo.instant <= birth < hi.instant:
            current, following = lo, hi
            break
    m_idx = month_index(y_idx % 10, current.month_number)

    pillars = {
        "year": Pillar("year", y_idx),
        "month": Pillar("month", m_idx),
        "day": Pillar("day", d_idx),
        "hour": Pillar("hour", hour_index(d_idx % 10, hour_branch(h, mi))) if has_time else None,
    }
    readings = {p: read_pillar(pl, d_idx % 10) for p, pl in pillars.items() if pl is not None}

    logger.debug("Pillars for %s: %s", birth.isoformat(),
                 {p: pl.name for p, pl in pillars.items() if pl is not None})

    return DiscretePillars(
        birth=birth,
        saju_year=saju_year,
        month_number=current.month_number,
        current_term=current,
        next_term=following,
        year_start=boundaries[0].instant,
        year_end=boundaries[-1].instant,
        readings=readings,
        **pillars,
    )


def compute_discrete(birth_moment, resolver: Optional[SolarTermResolver] = None) -> DiscretePillars:
    """Discrete chart for any object exposing year/month/day/hour/minute."""
    return compute_pillars(birth_moment.year, birth_moment.month, birth_moment.day,
                           birth_moment.hour, birth_moment.minute, resolver=resolver)


# ============================================================
# TWELVE-STAGE MATRIX
# ============================================================

@dataclass(frozen=True)
class StageCell:
    row: int
    col: int
    stage: TwelveStage

    @property
    def energy(self) -> float:
        return self.stage.energy

    def to_dict(self):
        return {"row": self.row, "col": self.col, "stage": self.stage.value,
                "energy": self.energy, "phase": self.stage.phase}


@dataclass(frozen=True)
class TwelveStageMatrix:
    positions: tuple
    cells: tuple   # rows of StageCell, stems x branches

    @property
    def diagonal(self) -> list[StageCell]:
        return [self.cells[i][i] for i in range(len(self.positions))]

    @property
    def total_energy(self) -> float:
        return sum(cell.energy for row in self.cells for cell in row)

    @property
    def average_energy(self) -> float:
        n = len(self.positions)
        return self.total_energy / (n * n)

    def to_dict(self):
        return {
            "positions": list(self.positions),
            "matrix": [[cell.to_dict() for cell in row] for row in self.cells],
            "diagonal": [cell.stage.value for cell in self.diagonal],
            "total_energy": self.total_energy,
            "average_energy": self.average_energy,
        }


def twelve_stage_matrix(chart: DiscretePillars) -> TwelveStageMatrix:
    """Stage of every stem in every branch, rows and columns in year, month, day, hour order."""
    positions = tuple(p for p in POSITIONS if chart.pillar(p) is not None)
    stems = [chart.pillar(p).index % 10 for p in positions]
    branches = [chart.pillar(p).index % 12 for p in positions]
    cells = tuple(
        tuple(StageCell(r, c, twelve_stage(s, b)) for c, b in enumerate(branches))
        for r, s in enumerate(stems)
    )
    return TwelveStageMatrix(positions, cells)
