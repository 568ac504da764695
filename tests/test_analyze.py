"""Unit tests for the overlap and dominance analyzer."""

import pytest

from tests.helpers import make_session
from trisearch.analyze import analyze_sessions, dominance_score, top_dominant
from trisearch.models import SessionResult


def _ids(items) -> list[str]:
    return [i.id for i in items]


class TestPartitions:
    def test_mixed_scenario(self) -> None:
        sessions = [
            make_session(0, ["A", "B", "C"]),
            make_session(1, ["A", "B", "D"]),
            make_session(2, ["A", "E", "F"]),
        ]
        report = analyze_sessions(sessions)

        assert _ids(report.appeared_in_all) == ["A"]
        assert _ids(report.appeared_in_some) == ["B"]
        assert set(_ids(report.appeared_once)) == {"C", "D", "E", "F"}
        assert len(report.all_unique) == 6
        assert report.overlap_rate == pytest.approx(33.333, abs=0.01)

    def test_every_id_in_exactly_one_partition(self) -> None:
        sessions = [
            make_session(0, ["A", "B", "C", "D"]),
            make_session(1, ["B", "C", "X"]),
            make_session(2, ["C", "Y", "A"]),
        ]
        report = analyze_sessions(sessions)
        parts = (
            _ids(report.appeared_in_all)
            + _ids(report.appeared_in_some)
            + _ids(report.appeared_once)
        )
        assert sorted(parts) == sorted(set(parts))
        assert set(parts) == {"A", "B", "C", "D", "X", "Y"}

    def test_sorted_by_views_descending(self) -> None:
        views = {"C": 5, "D": 500, "E": 50, "F": 0}
        sessions = [
            make_session(0, ["C", "D"], views),
            make_session(1, ["E"], views),
            make_session(2, ["F"], views),
        ]
        report = analyze_sessions(sessions)
        assert _ids(report.appeared_once) == ["D", "E", "C", "F"]

    def test_highest_views_variant_kept(self) -> None:
        sessions = [
            make_session(0, ["A"], {"A": 10}),
            make_session(1, ["A"], {"A": 50}),
            make_session(2, ["A"], {"A": 30}),
        ]
        report = analyze_sessions(sessions)
        assert report.appeared_in_all[0].metrics.view_count == 50

    def test_same_session_duplicates_counted_once(self) -> None:
        sessions = [
            make_session(0, ["A", "A", "B"]),
            make_session(1, ["A"]),
            make_session(2, ["C"]),
        ]
        report = analyze_sessions(sessions)
        assert _ids(report.appeared_in_some) == ["A"]
        assert report.appeared_in_all == []
        # B keeps rank 2 once the repeat of A is dropped.
        assert report.dominance["B"] == pytest.approx(50 / 3)

    def test_all_sessions_empty(self) -> None:
        sessions = [SessionResult(session_index=i) for i in range(3)]
        report = analyze_sessions(sessions)
        assert report.all_unique == []
        assert report.appeared_in_all == []
        assert report.appeared_in_some == []
        assert report.appeared_once == []
        assert report.overlap_rate == 0.0
        assert report.dominance == {}


class TestOverlapRate:
    def test_zero_without_repeats(self) -> None:
        sessions = [
            make_session(0, ["A"]),
            make_session(1, ["B"]),
            make_session(2, ["C"]),
        ]
        assert analyze_sessions(sessions).overlap_rate == 0.0

    def test_hundred_when_all_everywhere(self) -> None:
        sessions = [make_session(i, ["A", "B"]) for i in range(3)]
        assert analyze_sessions(sessions).overlap_rate == 100.0


class TestDominance:
    def test_rank_one_everywhere_scores_hundred(self) -> None:
        sessions = [make_session(i, ["A", "B"]) for i in range(3)]
        report = analyze_sessions(sessions)
        assert report.dominance["A"] == pytest.approx(100.0)
        assert report.dominance["B"] == pytest.approx(50.0)

    def test_rank_quality(self) -> None:
        assert dominance_score([1, 1, 1], 3) > dominance_score([10, 10, 10], 3)

    def test_appearance_count(self) -> None:
        once = dominance_score([1, None, None], 3)
        twice = dominance_score([1, 1, None], 3)
        assert once == pytest.approx(33.333, abs=0.01)
        assert twice == pytest.approx(66.667, abs=0.01)
        assert once < twice

    def test_no_sessions(self) -> None:
        assert dominance_score([], 0) == 0.0

    def test_top_dominant_order(self) -> None:
        sessions = [
            make_session(0, ["B", "A"]),
            make_session(1, ["A", "B"]),
            make_session(2, ["A"]),
        ]
        top = top_dominant(analyze_sessions(sessions), limit=1)
        assert top[0][0].id == "A"


class TestIdempotence:
    def test_same_input_same_report(self) -> None:
        sessions = [
            make_session(0, ["A", "B", "C"], {"A": 3, "B": 9}),
            make_session(1, ["C", "A"], {"C": 7}),
            make_session(2, ["D"]),
        ]
        assert analyze_sessions(sessions) == analyze_sessions(sessions)

    def test_report_keeps_sessions_and_query(self) -> None:
        sessions = [make_session(i, ["A"]) for i in range(3)]
        report = analyze_sessions(sessions, query="ramen")
        assert report.query == "ramen"
        assert report.session_count == 3
        assert [s.session_index for s in report.sessions] == [0, 1, 2]

    def test_report_serialises(self) -> None:
        report = analyze_sessions([make_session(0, ["A"]), make_session(1, [])])
        restored = type(report).model_validate_json(report.model_dump_json())
        assert restored == report

