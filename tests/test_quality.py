import pytest

from dungeonforge.layout import Connection, ConnectionKind, QualityAnalyzer, RegionRole
from dungeonforge.layout.quality import (
    CRITERIA_WEIGHTS,
    Priority,
    SuggestionType,
    estimate_memory,
    find_bottlenecks,
    score_path_length,
    teleporter_cycles,
)
from layout_test_utils import chain_map, region, three_region_map


def test_path_length_bands():
    assert score_path_length(None) == 0
    assert [score_path_length(n) for n in (3, 5, 6, 8, 9, 12, 13, 15, 16)] == [100, 100, 80, 80, 60, 60, 40, 40, 20]


def test_gameplay_score_monotone_in_path_length():
    analyzer = QualityAnalyzer()
    scores = []
    for boss_index in range(11, 3, -1):  # path of 12 nodes down to 5
        report = analyzer.analyze(chain_map(length=16, boss_index=boss_index))
        assert report.critical_path is not None
        assert len(report.critical_path) == boss_index + 1
        scores.append(report.gameplay)
    assert scores == sorted(scores)
    assert scores[-1] > scores[0]


def test_three_region_report():
    report = QualityAnalyzer().analyze(three_region_map())
    assert report.map_id == "three"
    assert report.critical_path == ["R1", "R2", "R3"]
    assert report.details["path_length"] == 100
    assert report.details["teleporter_count"] == 100
    assert report.details["region_variety"] == 60
    assert report.details["difficulty_progression"] == 100
    assert report.gameplay == pytest.approx((100 * 0.15 + 100 * 0.10 + 60 * 0.15) / 0.40)
    assert report.performance == 100
    expected = report.gameplay * 0.4 + report.balance * 0.3 + report.performance * 0.2 + report.layout * 0.1
    assert report.overall == pytest.approx(expected)
    types = {s.type for s in report.suggestions}
    assert SuggestionType.BALANCE in types  # only one combat region, no treasure
    assert SuggestionType.CONNECTION_STRUCTURE in types  # R1 and R3 have a single connection


def test_no_path_is_critical():
    layout = three_region_map(connections=[Connection(id="c1", source_id="R1", target_id="R2")])
    report = QualityAnalyzer().analyze(layout)
    assert report.critical_path is None
    assert report.details["path_length"] == 0
    critical = [s for s in report.suggestions if s.priority is Priority.CRITICAL]
    assert len(critical) == 1 and critical[0].type is SuggestionType.GAMEPLAY


def test_difficulty_regression_is_flagged():
    regions = [
        region("R1", 100, 100, role=RegionRole.SPAWN, difficulty=5),
        region("R2", 400, 100, role=RegionRole.COMBAT, difficulty=2),
        region("R3", 250, 400, role=RegionRole.BOSS, difficulty=6),
    ]
    report = QualityAnalyzer().analyze(three_region_map(regions=regions))
    assert report.details["difficulty_progression"] == 50
    assert any("Difficulty" in s.description for s in report.suggestions)


def test_teleporters_lower_the_score():
    layout = three_region_map()
    conns = list(layout.connections) + [
        Connection(id="t1", source_id="R1", target_id="R3", kind=ConnectionKind.TELEPORT)
    ]
    report = QualityAnalyzer().analyze(layout.with_elements(connections=conns))
    assert report.details["teleporter_count"] == 80


def test_memory_estimate_and_bottlenecks():
    layout = three_region_map()
    assert estimate_memory(layout) == 1024 * 1024 + 3 * 1024 + 2 * 512
    assert find_bottlenecks(layout) == []


def test_summary_and_to_dict():
    report = QualityAnalyzer().analyze(three_region_map())
    summary = report.summary()
    assert summary["total"] == len(report.suggestions)
    assert sum(summary["by_priority"].values()) == summary["total"]
    assert sum(summary["by_type"].values()) == summary["total"]
    data = report.to_dict()
    assert set(data) >= {"overall", "gameplay", "balance", "performance", "layout", "details", "suggestions"}


def test_criteria_weights_sum_to_one():
    assert sum(CRITERIA_WEIGHTS.values()) == pytest.approx(1.0)


def test_perfect_category_scores_exactly_100():
    report = QualityAnalyzer().analyze(three_region_map())
    assert report.performance == 100
    assert report.details["region_count"] == report.details["connection_count"] == 100


def test_teleporter_loop_is_reported():
    layout = three_region_map()
    loop = [
        Connection(id="t1", source_id="R1", target_id="R2", kind=ConnectionKind.TELEPORT),
        Connection(id="t2", source_id="R2", target_id="R3", kind=ConnectionKind.TELEPORT),
        Connection(id="t3", source_id="R3", target_id="R1", kind=ConnectionKind.TELEPORT),
    ]
    layout = layout.with_elements(connections=list(layout.connections) + loop)
    assert teleporter_cycles(layout) == [["R1", "R2", "R3"]]
    report = QualityAnalyzer().analyze(layout)
    looped = [s for s in report.suggestions if s.description == "Teleporters form a loop"]
    assert len(looped) == 1
    assert looped[0].affected_regions == ("R1", "R2", "R3")


def test_normal_loop_is_not_a_teleporter_loop():
    layout = three_region_map()
    extra = [
        Connection(id="c3", source_id="R3", target_id="R1"),
        Connection(id="t1", source_id="R1", target_id="R2", kind=ConnectionKind.TELEPORT),
    ]
    layout = layout.with_elements(connections=list(layout.connections) + extra)
    assert teleporter_cycles(layout) == []
    assert not any(s.description == "Teleporters form a loop" for s in QualityAnalyzer().analyze(layout).suggestions)
