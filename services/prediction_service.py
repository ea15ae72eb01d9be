"""
Prediction Service
Rule-based adherence forecast: finds times of day and weekdays where doses
tend to be missed and turns them into recommendations.
"""

import logging
from typing import Dict, List, Optional, Any, Iterable
from datetime import datetime, timedelta
from sqlalchemy.orm import Session

import models
from models import UserRole, AdherenceStatus
from config import settings
from exceptions import ValidationError
from policies import parse_id, require_patient_access


logger = logging.getLogger(__name__)

PERIODS = ["morning", "afternoon", "evening"]
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

NOT_ENOUGH_DATA = "Not enough adherence data to generate a prediction."
GOOD_ADHERENCE = "Your recent adherence looks generally good. Keep up the great work!"


def period_of_day(moment: datetime) -> str:
    if moment.hour < 12:
        return "morning"
    if moment.hour < 18:
        return "afternoon"
    return "evening"


def day_name(moment: datetime) -> str:
    # datetime.weekday() is Monday=0
    return DAY_NAMES[(moment.weekday() + 1) % 7]


def _reference_time(log) -> Optional[datetime]:
    return (
        getattr(log, "scheduled_time", None)
        or getattr(log, "created_at", None)
        or getattr(log, "taken_at", None)
    )


def _is_taken(log) -> bool:
    status = getattr(log, "status", None)
    if isinstance(status, AdherenceStatus):
        return status == AdherenceStatus.TAKEN
    return str(status or "").lower() == AdherenceStatus.TAKEN.value


def _problematic(buckets: Dict[str, Dict[str, int]], order: List[str], min_obs: int, threshold: float) -> List[str]:
    flagged = []
    for key in order:
        stats = buckets[key]
        total = stats["taken"] + stats["missed"]
        if total >= min_obs and stats["missed"] / max(total, 1) >= threshold:
            flagged.append(key)
    return flagged


def predict(
    logs: Iterable,
    min_observations: Optional[int] = None,
    miss_threshold: Optional[float] = None,
    streak_scan: Optional[int] = None
) -> Dict[str, Any]:
    """
    Analyze a window of adherence logs for one patient.

    Any status other than "taken" counts as a miss.

    Returns:
        {"patterns": {...}, "recommendations": [...]}, or a message with
        ``patterns`` set to None when there are no logs.
    """
    min_obs = min_observations if min_observations is not None else settings.PREDICTION_MIN_OBSERVATIONS
    threshold = miss_threshold if miss_threshold is not None else settings.PREDICTION_MISS_THRESHOLD
    scan = streak_scan if streak_scan is not None else settings.PREDICTION_STREAK_SCAN

    logs = [log for log in logs if _reference_time(log) is not None]
    if not logs:
        return {"message": NOT_ENOUGH_DATA, "patterns": None, "recommendations": []}

    period_stats = {p: {"taken": 0, "missed": 0} for p in PERIODS}
    day_stats = {d: {"taken": 0, "missed": 0} for d in DAY_NAMES}

    for log in logs:
        moment = _reference_time(log)
        outcome = "taken" if _is_taken(log) else "missed"
        period_stats[period_of_day(moment)][outcome] += 1
        day_stats[day_name(moment)][outcome] += 1

    likely_missed_periods = _problematic(period_stats, PERIODS, min_obs, threshold)
    likely_missed_days = _problematic(day_stats, DAY_NAMES, min_obs, threshold)

    # Consecutive misses counted back from the most recent log
    ordered = sorted(
        logs,
        key=lambda log: getattr(log, "scheduled_time", None) or getattr(log, "created_at", None) or _reference_time(log),
        reverse=True,
    )
    streak = 0
    for log in ordered[:scan]:
        if _is_taken(log):
            break
        streak += 1

    recommendations = []
    if "evening" in likely_missed_periods:
        recommendations.append(
            "You tend to miss your evening doses. Consider enabling smart reminders "
            "around your usual evening time."
        )
    if "morning" in likely_missed_periods:
        recommendations.append(
            "You often miss your morning doses. Try linking them to a stable routine like breakfast."
        )
    if likely_missed_days:
        recommendations.append(
            f"You miss doses more frequently on: {', '.join(likely_missed_days)}. "
            f"Planning ahead on those days may help."
        )
    if streak >= 3:
        recommendations.append(
            f"You have missed {streak} recent scheduled doses. It might help to talk to "
            f"your provider about what's getting in the way."
        )
    if not recommendations:
        recommendations.append(GOOD_ADHERENCE)

    return {
        "patterns": {
            "likely_missed_periods": likely_missed_periods,
            "likely_missed_days": likely_missed_days,
            "streak": streak,
        },
        "recommendations": recommendations,
    }


class PredictionService:
    """
    Loads the analysis window and runs the heuristic
    """

    async def predict_for_patient(
        self,
        actor: models.User,
        db: Session,
        patient_id: Optional[str] = None,
        days: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Patients get their own forecast; providers and admins must name a patient.
        """
        if days is None:
            days = settings.PREDICTION_WINDOW_DAYS
        if days < 1:
            raise ValidationError("days must be at least 1")

        if actor.role == UserRole.PATIENT:
            target = actor.id
        else:
            if not patient_id:
                raise ValidationError("patientId is required")
            target = parse_id(patient_id) or patient_id
            require_patient_access(db, actor, target)

        since = (now or datetime.utcnow()) - timedelta(days=days)
        logs = db.query(models.AdherenceLog).filter(
            models.AdherenceLog.patient_id == target,
            models.AdherenceLog.scheduled_time >= since
        ).all()

        logger.debug(f"Predicting adherence for patient {target} from {len(logs)} logs")
        return predict(logs)


# Singleton instance
prediction_service = PredictionService()
