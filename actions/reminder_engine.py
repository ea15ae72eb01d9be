"""
Reminder Engine
Periodic scan that emits dose reminders shortly before scheduled times
"""

import asyncio
import contextlib
import logging
from typing import List, Dict, Any, Optional, Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

import models
from models import WEEKDAYS


logger = logging.getLogger(__name__)


@dataclass
class Reminder:
    """A dose that is coming up within the lead window"""
    patient_id: str
    patient_name: str
    medication_id: str
    medication_name: str
    dosage: str
    dose_time: datetime
    minutes_until: float
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def message(self) -> str:
        return (
            f"Reminder: {self.patient_name} should take {self.medication_name} "
            f"({self.dosage}) at {self.dose_time.strftime('%H:%M')}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patient_id": self.patient_id,
            "patient_name": self.patient_name,
            "medication_id": self.medication_id,
            "medication_name": self.medication_name,
            "dosage": self.dosage,
            "dose_time": self.dose_time.isoformat(),
            "minutes_until": self.minutes_until,
            "message": self.message,
        }


def log_notifier(reminder: Reminder) -> None:
    """Default delivery: write the reminder to the log"""
    logger.info(reminder.message)


def is_in_course(medication: models.Medication, today) -> bool:
    """Whether today falls within the medication's start/end dates"""
    if medication.start_date and today < medication.start_date:
        return False
    if medication.end_date and today > medication.end_date:
        return False
    return True


def due_reminders(
    medications: Iterable[models.Medication],
    now: datetime,
    lead_minutes: int = 5
) -> List[Reminder]:
    """
    Reminders for schedule entries due today within ``lead_minutes`` of now.

    An entry fires when 0 <= (target - now) <= lead_minutes.
    """
    today_name = WEEKDAYS[now.weekday()]
    reminders = []

    for med in medications:
        if not is_in_course(med, now.date()):
            continue
        for entry in med.schedule or []:
            if today_name not in (entry.get("days") or []):
                continue
            try:
                hours, minutes = (int(part) for part in entry["time"].split(":"))
            except (KeyError, ValueError, AttributeError):
                logger.warning(f"Skipping malformed schedule entry on medication {med.id}: {entry}")
                continue

            target = now.replace(hour=hours, minute=minutes, second=0, microsecond=0)
            diff = (target - now) / timedelta(minutes=1)
            if 0 <= diff <= lead_minutes:
                patient = med.patient
                reminders.append(Reminder(
                    patient_id=med.patient_id,
                    patient_name=patient.first_name if patient else "User",
                    medication_id=med.id,
                    medication_name=med.name,
                    dosage=med.dosage,
                    dose_time=target,
                    minutes_until=round(diff, 2),
                ))
    return reminders


class ReminderScanner:
    """
    Polls active, reminder-enabled medications on a fixed interval.

    Stateless between runs: the same dose can be reported by consecutive
    scans while it stays inside the lead window.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        notifier: Callable[[Reminder], None] = log_notifier,
        clock: Callable[[], datetime] = datetime.now,
        interval_seconds: int = 300,
        lead_minutes: int = 5
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.lead_minutes = lead_minutes
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def scan(self, now: Optional[datetime] = None) -> List[Reminder]:
        """Run one pass and hand every due reminder to the notifier"""
        now = now or self.clock()
        with self.session_factory() as db:
            medications = db.query(models.Medication).filter(
                models.Medication.is_active.is_(True),
                models.Medication.reminder_enabled.is_(True)
            ).all()
            reminders = due_reminders(medications, now, self.lead_minutes)

        for reminder in reminders:
            try:
                self.notifier(reminder)
            except Exception:
                logger.exception(f"Failed to deliver reminder for medication {reminder.medication_id}")

        logger.debug(f"Reminder scan at {now.isoformat()}: {len(reminders)} due")
        return reminders

    async def run_forever(self) -> None:
        logger.info(f"Reminder scanner started (every {self.interval_seconds}s, lead {self.lead_minutes}m)")
        loop = asyncio.get_running_loop()
        while True:
            try:
                await loop.run_in_executor(None, self.scan)
            except Exception:
                logger.exception("Reminder scan failed")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.create_task(self.run_forever())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Reminder scanner stopped")
