"""Rule-based alerts over the latest-first history of each tracked category.

``analyze`` is a pure function: it takes ``{category: [record, ...]}`` with
every history ordered newest first (index 0 = latest, as the record store
returns it) and produces a fresh, priority-sorted alert list.

Numeric fields are coerced by integer-prefix parsing; anything that does not
parse becomes NaN, and every comparison against NaN is false, so malformed
input yields fewer alerts and never an exception.
"""

from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Mapping, Sequence

from constants import CATEGORIES

Record = Mapping[str, Any]
History = Sequence[Record]

NAN = math.nan

# Fixed policy constants
HIGH_WEIGHT = 90
HIGH_VOLUME = 3000
LOW_HRV = 50
MIN_SLEEP_HOURS = 7
HIGH_SORENESS = 7
CALORIE_NEED = 2500
PROTEIN_NEED_G = 150
MIN_CARBS_G = 200
MIN_PROTEIN_PCT = 20
MIN_FAT_PCT = 15
LOW_TAKEDOWN_PCT = 40
HIGH_TAKEDOWN_PCT = 70
MAX_SPARRING_ROUNDS = 10
HIGH_PAIN = 7
MODERATE_PAIN = 4
MAX_HEART_RATE = 180
LONG_SESSION_MIN = 90
SLOW_PACE = 10  # min per mile
TREND_DROP = 0.8
TREND_JUMP = 1.2
RUN_LENGTH = 3

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True)
class Alert:
    category: str
    type: str  # error | warning | info | success
    priority: int  # 1 = most urgent
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ─── Coercion ──────────────────────────────────────────────

def _int(value: Any) -> float:
    """Integer-prefix parse: 92.7 -> 92, "12kg" -> 12, junk -> NaN."""
    if value is None or isinstance(value, bool):
        return NAN
    try:
        if isinstance(value, (int, float)):
            return float(math.trunc(value)) if math.isfinite(value) else NAN
        match = _LEADING_INT.match(str(value))
        return float(match.group(1)) if match else NAN
    except (OverflowError, ValueError):
        return NAN


def _float_or_zero(value: Any) -> float:
    """Float-prefix parse where unparseable values count as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        if isinstance(value, (int, float)):
            return float(value) if math.isfinite(value) else 0.0
        match = _LEADING_FLOAT.match(str(value))
        return float(match.group(1)) if match else 0.0
    except (OverflowError, ValueError):
        return 0.0


def _ratio(numerator: float, denominator: float) -> float:
    if math.isnan(numerator) or math.isnan(denominator) or denominator == 0:
        return NAN
    return numerator / denominator


def _fmt(value: float) -> str:
    return str(int(value)) if math.isfinite(value) else "NaN"


def _pct(value: float) -> str:
    return _fmt(math.floor(value + 0.5)) if math.isfinite(value) else "NaN"


# ─── Per-category rules ────────────────────────────────────

def _strength_alerts(history: History) -> List[Alert]:
    alerts: List[Alert] = []
    latest = history[0]
    weight = _int(latest.get("weight"))
    volume = weight * _int(latest.get("reps")) * _int(latest.get("sets"))

    if weight > HIGH_WEIGHT:
        alerts.append(Alert("strength", "warning", 2,
                            "High weight detected. Ensure proper form and technique to prevent injury."))
    if volume > HIGH_VOLUME:
        alerts.append(Alert("strength", "warning", 1,
                            "High training volume detected. Ensure adequate recovery time."))

    if len(history) > 1:
        previous = history[1]
        previous_volume = _int(previous.get("weight")) * _int(previous.get("reps")) * _int(previous.get("sets"))
        if volume < previous_volume * TREND_DROP:
            alerts.append(Alert("strength", "info", 2,
                                "Significant decrease in training volume detected. "
                                "Check for fatigue or technique issues."))
        elif volume > previous_volume * TREND_JUMP:
            alerts.append(Alert("strength", "success", 3,
                                "Significant increase in training volume! Great progress."))
    return alerts


def _recovery_alerts(history: History) -> List[Alert]:
    alerts: List[Alert] = []
    latest = history[0]
    hrv = _int(latest.get("hrv"))
    sleep_hours = _int(latest.get("sleepHours"))
    soreness = _int(latest.get("soreness"))

    if hrv < LOW_HRV:
        alerts.append(Alert("recovery", "error", 1,
                            "Low HRV detected. Consider taking a rest day or reducing training intensity."))
    if sleep_hours < MIN_SLEEP_HOURS:
        alerts.append(Alert("recovery", "warning", 1,
                            "Insufficient sleep detected. Aim for 7-9 hours of sleep for optimal recovery."))
    if soreness > HIGH_SORENESS:
        alerts.append(Alert("recovery", "warning", 2,
                            "High soreness level detected. Consider active recovery techniques."))

    if len(history) >= RUN_LENGTH:
        window = history[:RUN_LENGTH]
        if all(_int(r.get("hrv")) < LOW_HRV for r in window):
            alerts.append(Alert("recovery", "error", 1,
                                "Consistently low HRV detected across multiple days. High risk of overtraining."))
        if all(_int(r.get("sleepHours")) < MIN_SLEEP_HOURS for r in window):
            alerts.append(Alert("recovery", "error", 1,
                                "Consistently poor sleep detected. "
                                "This severely impacts recovery and performance."))
    return alerts


def _nutrition_alerts(history: History) -> List[Alert]:
    alerts: List[Alert] = []
    latest = history[0]
    calories = _int(latest.get("calories"))
    protein = _int(latest.get("protein"))
    carbs = _int(latest.get("carbs"))
    fats = _int(latest.get("fats"))

    if protein < PROTEIN_NEED_G:
        alerts.append(Alert("nutrition", "warning", 2,
                            f"Low protein intake detected ({_fmt(protein)}g). "
                            "Increase protein intake for better recovery and muscle growth."))
    if carbs < MIN_CARBS_G:
        alerts.append(Alert("nutrition", "warning", 3,
                            f"Low carbohydrate intake detected ({_fmt(carbs)}g). "
                            "Increase carbs for better energy levels and performance."))

    if calories < CALORIE_NEED * TREND_DROP:
        alerts.append(Alert("nutrition", "error", 1,
                            f"Calorie intake is significantly below needs ({_fmt(calories)}). "
                            "This may impact recovery and performance."))
    elif calories > CALORIE_NEED * TREND_JUMP:
        alerts.append(Alert("nutrition", "info", 3,
                            f"Calorie intake is above estimated needs ({_fmt(calories)}). "
                            "Ensure this aligns with your current training phase."))

    protein_pct = _ratio(protein * 4, calories) * 100
    fat_pct = _ratio(fats * 9, calories) * 100
    if protein_pct < MIN_PROTEIN_PCT:
        alerts.append(Alert("nutrition", "warning", 2,
                            f"Protein is only {_pct(protein_pct)}% of your diet. "
                            "Consider increasing relative protein intake."))
    if fat_pct < MIN_FAT_PCT:
        alerts.append(Alert("nutrition", "warning", 3,
                            f"Fat intake is only {_pct(fat_pct)}% of your diet. "
                            "Healthy fats are essential for hormone production."))
    return alerts


def _wrestling_alerts(history: History) -> List[Alert]:
    alerts: List[Alert] = []
    latest = history[0]
    takedown = _int(latest.get("takedownPercentage"))
    rounds = _int(latest.get("sparringRounds"))

    if takedown < LOW_TAKEDOWN_PCT:
        alerts.append(Alert("wrestling", "warning", 2,
                            f"Low takedown percentage detected ({_fmt(takedown)}%). "
                            "Focus on technique improvement."))
    elif takedown > HIGH_TAKEDOWN_PCT:
        alerts.append(Alert("wrestling", "success", 3,
                            f"Excellent takedown percentage ({_fmt(takedown)}%)! "
                            "Your technique is working well."))

    if rounds > MAX_SPARRING_ROUNDS:
        alerts.append(Alert("wrestling", "warning", 2,
                            f"High number of sparring rounds ({_fmt(rounds)}). Ensure adequate recovery."))

    if len(history) > 1:
        previous = _int(history[1].get("takedownPercentage"))
        if takedown < previous * TREND_DROP:
            alerts.append(Alert("wrestling", "info", 2,
                                "Significant decrease in takedown percentage. Review technique and strategy."))
        elif takedown > previous * TREND_JUMP:
            alerts.append(Alert("wrestling", "success", 3,
                                "Significant improvement in takedown percentage! Your practice is paying off."))
    return alerts


def _injury_alerts(history: History) -> List[Alert]:
    alerts: List[Alert] = []
    latest = history[0]
    pain = _int(latest.get("painLevel"))
    area = latest.get("area")
    where = area or "an unspecified area"

    if pain > HIGH_PAIN:
        alerts.append(Alert("injury", "error", 1,
                            f"High pain level ({_fmt(pain)}/10) detected in {where}. Seek medical evaluation."))
    elif pain > MODERATE_PAIN:
        alerts.append(Alert("injury", "warning", 1,
                            f"Moderate pain ({_fmt(pain)}/10) detected in {where}. Consider modifying training."))

    # Records without an area are not grouped together, so they never recur.
    if area:
        same_area = sum(1 for r in history if r.get("area") == area)
        if same_area > 1:
            alerts.append(Alert("injury", "error", 1,
                                f"Recurring injury detected in {area}. "
                                "This may indicate a chronic issue that needs addressing."))
    return alerts


def _cardio_alerts(history: History) -> List[Alert]:
    alerts: List[Alert] = []
    latest = history[0]
    heart_rate = _int(latest.get("heartRate"))
    duration = _int(latest.get("duration"))

    if heart_rate > MAX_HEART_RATE:
        alerts.append(Alert("cardio", "warning", 2,
                            f"Very high heart rate detected ({_fmt(heart_rate)} bpm). "
                            "Ensure this is appropriate for your training."))
    if duration > LONG_SESSION_MIN:
        alerts.append(Alert("cardio", "info", 3,
                            f"Long cardio session ({_fmt(duration)} min). "
                            "Ensure this aligns with your training goals."))

    # Pace window only once there is history beyond the window itself.
    if len(history) > RUN_LENGTH:
        window = history[:RUN_LENGTH]
        total_distance = sum(_float_or_zero(r.get("distance")) for r in window)
        total_duration = sum(_float_or_zero(r.get("duration")) for r in window)
        if total_distance == 0 and total_duration > 0:
            average_pace = math.inf
        else:
            average_pace = _ratio(total_duration, total_distance)
        if average_pace > SLOW_PACE:
            alerts.append(Alert("cardio", "info", 3,
                                "Your recent cardio pace is slower than optimal. Consider adding some speed work."))
    return alerts


RULES: Dict[str, Callable[[History], List[Alert]]] = {
    "strength": _strength_alerts,
    "recovery": _recovery_alerts,
    "nutrition": _nutrition_alerts,
    "wrestling": _wrestling_alerts,
    "injury": _injury_alerts,
    "cardio": _cardio_alerts,
}


# ─── Public API ────────────────────────────────────────────

def analyze(history: Mapping[str, History]) -> List[Alert]:
    """Evaluate every category's rules and return alerts sorted by priority.

    Categories run in ``CATEGORIES`` order; the sort is stable, so alerts of
    equal priority keep that order.
    """
    if not isinstance(history, Mapping):
        return []
    fired: List[Alert] = []
    for category in CATEGORIES:
        records = _normalize(history.get(category))
        if not records:
            continue
        fired.extend(RULES[category](records))
    return sorted(fired, key=lambda a: a.priority)


def _normalize(records: Any) -> List[Record]:
    # Entries that are not mappings keep their slot but read as all-NaN.
    if not isinstance(records, (list, tuple)):
        return []
    return [r if isinstance(r, Mapping) else {} for r in records]


def has_critical(alerts: Sequence[Alert]) -> bool:
    return any(a.type == "error" for a in alerts)


def group_by_category(alerts: Sequence[Alert]) -> Dict[str, List[Alert]]:
    grouped: Dict[str, List[Alert]] = {}
    for alert in alerts:
        grouped.setdefault(alert.category, []).append(alert)
    return grouped
