from saju.bazi import DiscretePillars
from saju.elements import Element
from saju.relations import (branch_clash, branch_combine, complete_triads, describe, detect_overlay_relations,
                            detect_relations, half_combine, punishment, stem_clash, stem_combine)

# 甲申, 甲子, 甲辰: a full water triad across year, month and day
TRIAD_CHART = DiscretePillars.from_indices(20, 0, 40)


def test_pair_tables_are_symmetric():
    assert stem_combine(0, 5) is stem_combine(5, 0) is Element.EARTH
    assert stem_clash(6, 0) and stem_clash(0, 6)
    assert branch_combine(11, 2) is Element.WOOD
    assert branch_clash(5, 11)
    assert half_combine(4, 0) is Element.WATER
    assert stem_combine(0, 1) is None
    assert not branch_clash(0, 1)


def test_punishments():
    assert punishment(4, 4) == "self"
    assert punishment(0, 0) is None
    assert punishment(3, 0) == "rude"
    assert punishment(2, 5) == "ungrateful"


def test_complete_triads():
    found = complete_triads([8, 0, 4, 7])
    assert found == [((8, 0, 4), Element.WATER, "triad")]
    assert complete_triads([11, 0, 1]) == [((11, 0, 1), Element.WATER, "directional")]
    assert complete_triads([8, 0]) == []


def test_adjacent_clashes():
    # 甲子 year, 庚午 month, 甲子 day
    chart = DiscretePillars.from_indices(0, 6, 0)
    relations = detect_relations(chart)
    clashes = {(r.row, r.positions) for r in relations if r.category == "clash"}
    assert clashes == {
        ("stem", ("day", "month")), ("branch", ("day", "month")),
        ("stem", ("month", "year")), ("branch", ("month", "year")),
    }


def test_triad_detected_over_consecutive_pillars():
    relations = detect_relations(TRIAD_CHART)
    triads = [r for r in relations if r.positions == ("day", "month", "year")]
    assert len(triads) == 1
    assert triads[0].element is Element.WATER
    assert triads[0].description.startswith("삼합")


def test_overlay_relations():
    relations = detect_overlay_relations(TRIAD_CHART, 5, "saeun")
    combines = [r for r in relations if r.category == "combine" and r.row == "stem"]
    assert [r.positions for r in combines] == [("saeun", "day"), ("saeun", "month"), ("saeun", "year")]
    assert all(r.element is Element.EARTH for r in combines)


def test_describe():
    lines = describe(detect_relations(DiscretePillars.from_indices(0, 6, 0)))
    assert any(line.startswith("day-month:") for line in lines)
    assert all(":" in line for line in lines)
