"""
Run Statistics Builder Tests
============================
"""

import pytest

from coach.schemas import CoachFeedbackRequest, CoachStyle, Language
from coach.stats_builder import (
    analyze_splits, build_stats_description, classify_heart_rate,
    classify_pace_gap, classify_scene, compliance_rate, format_split, label,
)


def make_request(**fields) -> CoachFeedbackRequest:
    payload = {"currentPace": 5.5, "distance": 3.2, "duration": 1200}
    payload.update(fields)
    return CoachFeedbackRequest.model_validate(payload)


class TestPaceGap:
    """Pace comparison against the target, 0.5 min/km tolerance."""

    def test_slower_than_target(self):
        assert classify_pace_gap(5.0, 4.4) == "slower"
        assert label("slower", Language.EN) == "currently slower"

    def test_faster_than_target(self):
        assert classify_pace_gap(3.8, 4.4) == "faster"
        assert label("faster", Language.EN) == "currently faster"

    def test_within_tolerance(self):
        assert classify_pace_gap(4.5, 4.4) == "on_target"
        assert classify_pace_gap(4.0, 4.4) == "on_target"
        assert label("on_target", Language.EN) == "pace appropriate"


class TestHeartRateZones:
    """Strict '>' thresholds, evaluated top-down."""

    @pytest.mark.parametrize("bpm,zone", [
        (171, "high"),
        (170, "moderate_high"),
        (160, "moderate_high"),
        (150, "normal"),
        (140, "normal"),
        (130, "low"),
        (100, "low"),
    ])
    def test_zone(self, bpm, zone):
        assert classify_heart_rate(bpm) == zone

    def test_english_labels(self):
        assert label("hr_moderate_high", Language.EN) == "heart rate moderate-high"
        assert label("hr_high", Language.EN) == "heart rate high"


class TestSplitAnalysis:

    def test_even_splits(self):
        analysis = analyze_splits([300, 300, 300, 300])

        assert analysis.variation_pct == 0.0
        assert analysis.fastest_km == 1
        assert analysis.slowest_km == 1
        assert analysis.pacing == "even"

    def test_fading_second_half(self):
        analysis = analyze_splits([280, 290, 310, 330])

        assert analysis.first_half_avg == 285
        assert analysis.second_half_avg == 320
        assert analysis.pacing == "fade"
        assert analysis.fastest_km == 1
        assert analysis.slowest_km == 4
        assert f"{analysis.variation_pct:.1f}" == "16.5"

    def test_negative_split(self):
        analysis = analyze_splits([330, 310, 290, 280])
        assert analysis.pacing == "negative_split"

    def test_odd_count_puts_middle_in_second_half(self):
        analysis = analyze_splits([300, 300, 330])

        assert analysis.first_half_avg == 300
        assert analysis.second_half_avg == 315
        assert analysis.pacing == "even"

    def test_single_split_has_no_pacing(self):
        analysis = analyze_splits([312])

        assert analysis.pacing is None
        assert analysis.first_half_avg is None

    def test_empty_splits_rejected(self):
        with pytest.raises(ValueError):
            analyze_splits([])

    def test_format_split_pads_seconds(self):
        assert format_split(305) == "5:05"
        assert format_split(302.5) == "5:02"


class TestScene:
    """Post-run scene classification."""

    def test_no_target_is_recovery(self):
        request = make_request(kmSplits=[280, 290, 310, 330])
        assert classify_scene(analyze_splits(request.km_splits), request) == "recovery"

    def test_easy_run_is_recovery(self):
        request = make_request(targetPace=5.0, trainingType="easy_run", kmSplits=[280, 290, 310, 330])
        assert classify_scene(analyze_splits(request.km_splits), request) == "recovery"

    def test_fade(self):
        request = make_request(targetPace=5.0, kmSplits=[280, 290, 310, 330])
        assert classify_scene(analyze_splits(request.km_splits), request) == "fade"

    def test_erratic(self):
        request = make_request(targetPace=5.0, kmSplits=[240, 360, 240, 360])
        assert classify_scene(analyze_splits(request.km_splits), request) == "erratic"

    def test_too_fast(self):
        request = make_request(targetPace=5.0, kmSplits=[260, 262, 260, 262])
        assert classify_scene(analyze_splits(request.km_splits), request) == "too_fast"

    def test_too_slow(self):
        request = make_request(targetPace=5.0, kmSplits=[340, 338, 340, 338])
        assert classify_scene(analyze_splits(request.km_splits), request) == "too_slow"

    def test_on_target(self):
        request = make_request(targetPace=5.0, kmSplits=[300, 300, 300, 300])
        assert classify_scene(analyze_splits(request.km_splits), request) == "on_target"

    def test_compliance_rate(self):
        assert compliance_rate([300, 310, 320, 340], 5.0) == 0.5
        assert compliance_rate([300, 310], None) == 0.0


class TestStatsDescription:

    def test_realtime_minimal_block(self):
        """Scenario: only the always-present lines."""
        request = make_request(coachStyle="strict")
        stats = build_stats_description(request)

        assert stats.split("\n") == [
            "当前配速: 5分30秒/公里",
            "已跑距离: 3.20公里",
            "已跑时间: 20分0秒",
        ]

    def test_optional_lines(self):
        request = make_request(targetPace=4.4, totalDistance=5.0, heartRate=160)
        lines = build_stats_description(request).split("\n")

        assert lines == [
            "当前配速: 5分30秒/公里",
            "目标配速: 4分24秒/公里",
            "当前偏慢",
            "已跑距离: 3.20公里",
            "剩余距离: 1.80公里",
            "完成进度: 64%",
            "已跑时间: 20分0秒",
            "心率: 160bpm",
            "心率适中",
        ]

    def test_progress_rounds_half_up(self):
        stats = build_stats_description(make_request(distance=2.5, totalDistance=4))

        assert "剩余距离: 1.50公里" in stats
        assert "完成进度: 63%" in stats

    def test_english_block(self):
        request = make_request(language="en", heartRate=171)
        stats = build_stats_description(request)

        assert "current pace: 5 minutes 30 seconds/km" in stats
        assert "distance covered: 3.20 km" in stats
        assert "elapsed time: 20 minutes 0 seconds" in stats
        assert "heart rate high" in stats

    def test_split_block(self):
        request = make_request(language="en", kmSplits=[280, 290, 310, 330], goalName="10K PB")
        stats = build_stats_description(request)

        assert "km 1: 4:40" in stats
        assert "km 4: 5:30" in stats
        assert "average split: 5:02" in stats
        assert "fastest: km 1 (4:40)" in stats
        assert "slowest: km 4 (5:30)" in stats
        assert "variation: 16.5%" in stats
        assert "pacing: fades in second half" in stats
        assert "scene: recovery run" in stats
        assert "training goal: 10K PB" in stats
        # no target pace, no compliance line
        assert "on-target kilometers" not in stats

    def test_compliance_line_with_target(self):
        request = make_request(targetPace=5.0, kmSplits=[300, 300, 300, 300])
        stats = build_stats_description(request)

        assert "达标率: 100%" in stats
        assert "节奏: 配速均匀" in stats
        assert "场景: 稳定达标" in stats

    def test_unknown_style_defaults_to_encouraging(self):
        assert make_request(coachStyle="shouty").coach_style == CoachStyle.ENCOURAGING
        assert make_request().coach_style == CoachStyle.ENCOURAGING
