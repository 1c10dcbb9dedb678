"""
Run Statistics Builder
======================

Renders a telemetry snapshot into the plain-text statistics block that the
prompt builder embeds in the user prompt.
NO LLM calls - pure Python logic.

Key Rules:
1. Pace, distance and elapsed time lines are always present
2. Target pace, remaining distance and heart rate only when sent by the app
3. Split block (and scene) only in post-run mode
4. Thresholds are literal constants, not physiological zones
"""

import math
from dataclasses import dataclass
from typing import List, Optional

from coach.schemas import CoachFeedbackRequest, Language


# Pace gap (min/km) beyond which the runner is told they are off target
PACE_GAP_THRESHOLD = 0.5

# Heart rate buckets, evaluated top-down with strict ">"
HR_HIGH = 170
HR_MODERATE_HIGH = 150
HR_NORMAL = 130

# Half-to-half ratio that counts as fading / negative split
HALF_SPLIT_RATIO = 1.05

# Scene classification
COMPLIANCE_WINDOW_SEC = 15
ERRATIC_CV_PCT = 12.0
TOO_FAST_RATIO = 0.92
TOO_SLOW_RATIO = 1.08
RECOVERY_TRAINING_TYPES = ("easy_run", "rest")


LABELS = {
    Language.ZH_HANS: {
        "current_pace": "当前配速: {m}分{s}秒/公里",
        "target_pace": "目标配速: {m}分{s}秒/公里",
        "slower": "当前偏慢",
        "faster": "当前偏快",
        "on_target": "配速合适",
        "distance": "已跑距离: {km}公里",
        "remaining": "剩余距离: {km}公里",
        "progress": "完成进度: {pct}%",
        "duration": "已跑时间: {m}分{s}秒",
        "heart_rate": "心率: {bpm}bpm",
        "hr_high": "心率偏高",
        "hr_moderate_high": "心率适中",
        "hr_normal": "心率正常",
        "hr_low": "心率偏低",
        "split": "第{km}公里: {pace}",
        "split_average": "平均每公里: {pace}",
        "split_fastest": "最快: 第{km}公里 ({pace})",
        "split_slowest": "最慢: 第{km}公里 ({pace})",
        "split_variation": "配速波动: {pct}%",
        "fade": "后半程掉速",
        "negative_split": "负分段（越跑越快）",
        "even": "配速均匀",
        "pacing": "节奏: {label}",
        "scene": "场景: {label}",
        "compliance": "达标率: {pct}%",
        "goal": "训练目标: {goal}",
        "scene_recovery": "恢复跑",
        "scene_fade": "前快后崩",
        "scene_erratic": "波动大",
        "scene_too_fast": "全程偏快风险高",
        "scene_too_slow": "全程偏慢但稳定",
        "scene_on_target": "稳定达标",
    },
    Language.EN: {
        "current_pace": "current pace: {m} minutes {s} seconds/km",
        "target_pace": "target pace: {m} minutes {s} seconds/km",
        "slower": "currently slower",
        "faster": "currently faster",
        "on_target": "pace appropriate",
        "distance": "distance covered: {km} km",
        "remaining": "remaining distance: {km} km",
        "progress": "progress: {pct}%",
        "duration": "elapsed time: {m} minutes {s} seconds",
        "heart_rate": "heart rate: {bpm}bpm",
        "hr_high": "heart rate high",
        "hr_moderate_high": "heart rate moderate-high",
        "hr_normal": "heart rate normal",
        "hr_low": "heart rate low",
        "split": "km {km}: {pace}",
        "split_average": "average split: {pace}",
        "split_fastest": "fastest: km {km} ({pace})",
        "split_slowest": "slowest: km {km} ({pace})",
        "split_variation": "variation: {pct}%",
        "fade": "fades in second half",
        "negative_split": "negative split (speeds up)",
        "even": "even pacing",
        "pacing": "pacing: {label}",
        "scene": "scene: {label}",
        "compliance": "on-target kilometers: {pct}%",
        "goal": "training goal: {goal}",
        "scene_recovery": "recovery run",
        "scene_fade": "fast start then fade",
        "scene_erratic": "erratic pacing",
        "scene_too_fast": "consistently too fast",
        "scene_too_slow": "consistently slow but steady",
        "scene_on_target": "steady and on target",
    },
}


def label(key: str, language: Language = Language.ZH_HANS) -> str:
    """Look up a label in the given language."""
    return LABELS[language][key]


@dataclass
class SplitAnalysis:
    """Descriptive statistics over per-kilometer splits (seconds)."""
    splits: List[float]
    average: float
    fastest: float
    fastest_km: int  # 1-indexed
    slowest: float
    slowest_km: int  # 1-indexed
    variation_pct: float
    std_dev: float
    first_half_avg: Optional[float] = None
    second_half_avg: Optional[float] = None
    pacing: Optional[str] = None  # fade | negative_split | even

    @property
    def cv_pct(self) -> float:
        """Coefficient of variation in percent."""
        return self.std_dev / self.average * 100


# ==============================================================================
# Formatting helpers
# ==============================================================================

def split_minutes(pace: float):
    """Pace in min/km -> (whole minutes, whole seconds)."""
    minutes = math.floor(pace)
    seconds = math.floor((pace - minutes) * 60)
    return minutes, seconds


def format_split(seconds: float) -> str:
    """Seconds -> 'M:SS'."""
    return f"{math.floor(seconds / 60)}:{math.floor(seconds % 60):02d}"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


# ==============================================================================
# Classification
# ==============================================================================

def classify_pace_gap(current_pace: float, target_pace: float) -> str:
    """Returns 'slower', 'faster' or 'on_target'."""
    gap = current_pace - target_pace
    if abs(gap) > PACE_GAP_THRESHOLD:
        return "slower" if gap > 0 else "faster"
    return "on_target"


def classify_heart_rate(bpm: int) -> str:
    """Returns 'high', 'moderate_high', 'normal' or 'low'."""
    if bpm > HR_HIGH:
        return "high"
    elif bpm > HR_MODERATE_HIGH:
        return "moderate_high"
    elif bpm > HR_NORMAL:
        return "normal"
    return "low"


def analyze_splits(splits: List[float]) -> SplitAnalysis:
    """
    Compute average, extremes, variation and half-to-half pacing.

    Ties on fastest/slowest resolve to the first kilometer that matches.
    Half comparison needs at least two splits.
    """
    if not splits:
        raise ValueError("analyze_splits needs at least one split")

    n = len(splits)
    average = sum(splits) / n
    fastest = min(splits)
    slowest = max(splits)
    variance = sum((s - average) ** 2 for s in splits) / n

    analysis = SplitAnalysis(
        splits=list(splits),
        average=average,
        fastest=fastest,
        fastest_km=splits.index(fastest) + 1,
        slowest=slowest,
        slowest_km=splits.index(slowest) + 1,
        variation_pct=(slowest - fastest) / average * 100,
        std_dev=math.sqrt(variance),
    )

    if n >= 2:
        mid = n // 2
        first_half = splits[:mid]
        second_half = splits[mid:]
        analysis.first_half_avg = sum(first_half) / len(first_half)
        analysis.second_half_avg = sum(second_half) / len(second_half)

        if analysis.second_half_avg > analysis.first_half_avg * HALF_SPLIT_RATIO:
            analysis.pacing = "fade"
        elif analysis.first_half_avg > analysis.second_half_avg * HALF_SPLIT_RATIO:
            analysis.pacing = "negative_split"
        else:
            analysis.pacing = "even"

    return analysis


def compliance_rate(splits: List[float], target_pace: Optional[float]) -> float:
    """Share of kilometers within the compliance window of the target pace."""
    if not splits or not target_pace:
        return 0.0
    target_sec = target_pace * 60
    compliant = [s for s in splits if abs(s - target_sec) <= COMPLIANCE_WINDOW_SEC]
    return len(compliant) / len(splits)


def classify_scene(analysis: SplitAnalysis, request: CoachFeedbackRequest) -> str:
    """
    Classify the finished run into a scene key.

    Priority:
    1. recovery - easy run / rest day, or no target pace
    2. fade - second half slower than the first by more than 5%
    3. erratic - coefficient of variation >= 12%
    4. too_fast / too_slow - average more than 8% off target
    5. on_target - by compliance rate
    """
    if request.training_type in RECOVERY_TRAINING_TYPES or not request.target_pace:
        return "recovery"

    if analysis.pacing == "fade":
        return "fade"

    cv = analysis.cv_pct
    if cv >= ERRATIC_CV_PCT:
        return "erratic"

    target_sec = request.target_pace * 60
    if analysis.average < target_sec * TOO_FAST_RATIO:
        return "too_fast"
    if analysis.average > target_sec * TOO_SLOW_RATIO:
        return "too_slow"

    rate = compliance_rate(analysis.splits, request.target_pace)
    if rate >= 0.7:
        return "on_target"
    return "on_target" if rate >= 0.5 else "erratic"


# ==============================================================================
# Statistics block
# ==============================================================================

def _split_lines(analysis: SplitAnalysis, language: Language) -> List[str]:
    lines = [
        label("split", language).format(km=i, pace=format_split(s))
        for i, s in enumerate(analysis.splits, start=1)
    ]
    lines.append(label("split_average", language).format(pace=format_split(analysis.average)))
    lines.append(label("split_fastest", language).format(
        km=analysis.fastest_km, pace=format_split(analysis.fastest)))
    lines.append(label("split_slowest", language).format(
        km=analysis.slowest_km, pace=format_split(analysis.slowest)))
    lines.append(label("split_variation", language).format(pct=f"{analysis.variation_pct:.1f}"))
    if analysis.pacing:
        lines.append(label("pacing", language).format(label=label(analysis.pacing, language)))
    return lines


def build_stats_description(request: CoachFeedbackRequest) -> str:
    """
    Build the statistics block for a telemetry snapshot.

    Returns:
        Newline-joined lines in the request language
    """
    language = request.language
    lines = []

    m, s = split_minutes(request.current_pace)
    lines.append(label("current_pace", language).format(m=m, s=s))

    if request.target_pace:
        m, s = split_minutes(request.target_pace)
        lines.append(label("target_pace", language).format(m=m, s=s))
        gap = classify_pace_gap(request.current_pace, request.target_pace)
        lines.append(label(gap, language))

    lines.append(label("distance", language).format(km=f"{request.distance:.2f}"))
    if request.total_distance:
        remaining = request.total_distance - request.distance
        lines.append(label("remaining", language).format(km=f"{remaining:.2f}"))
        progress = _round_half_up(request.distance / request.total_distance * 100)
        lines.append(label("progress", language).format(pct=progress))

    minutes = math.floor(request.duration / 60)
    seconds = math.floor(request.duration % 60)
    lines.append(label("duration", language).format(m=minutes, s=seconds))

    if request.heart_rate:
        lines.append(label("heart_rate", language).format(bpm=request.heart_rate))
        zone = classify_heart_rate(request.heart_rate)
        lines.append(label(f"hr_{zone}", language))

    if request.km_splits:
        analysis = analyze_splits(request.km_splits)
        lines.extend(_split_lines(analysis, language))

        scene = classify_scene(analysis, request)
        lines.append(label("scene", language).format(label=label(f"scene_{scene}", language)))
        if request.target_pace:
            rate = compliance_rate(analysis.splits, request.target_pace)
            lines.append(label("compliance", language).format(pct=_round_half_up(rate * 100)))
        if request.goal_name:
            lines.append(label("goal", language).format(goal=request.goal_name))

    return "\n".join(lines)
