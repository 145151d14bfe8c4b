"""
Record models for the six tracked categories.

Attribute names match storage columns (snake_case); aliases carry the
camelCase wire names used by the front end.  Pydantic's lax mode provides
the type coercion ("92" -> 92.0) the API promises, nothing more.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class TrainingRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[int] = None
    date: Optional[datetime] = None
    notes: Optional[str] = None

    @classmethod
    def columns(cls) -> List[str]:
        """Category-specific storage columns (excludes id/date)."""
        return [name for name in cls.model_fields if name not in ("id", "date")]

    def to_row(self) -> Dict[str, Any]:
        """Column -> value mapping for an INSERT."""
        row = self.model_dump(include=set(self.columns()))
        if self.date is not None:
            row["date"] = self.date
        return row

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class StrengthRecord(TrainingRecord):
    exercise: Optional[str] = None
    weight: Optional[float] = None
    reps: Optional[float] = None
    sets: Optional[float] = None


class CardioRecord(TrainingRecord):
    type: Optional[str] = None
    duration: Optional[float] = None
    distance: Optional[float] = None
    heart_rate: Optional[float] = Field(default=None, alias="heartRate")


class NutritionRecord(TrainingRecord):
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fats: Optional[float] = None


class RecoveryRecord(TrainingRecord):
    sleep_hours: Optional[float] = Field(default=None, alias="sleepHours")
    hrv: Optional[float] = None
    soreness: Optional[float] = None


class WrestlingRecord(TrainingRecord):
    takedown_percentage: Optional[float] = Field(default=None, alias="takedownPercentage")
    sparring_rounds: Optional[float] = Field(default=None, alias="sparringRounds")
    technique: Optional[str] = None


class InjuryRecord(TrainingRecord):
    area: Optional[str] = None
    pain_level: Optional[float] = Field(default=None, alias="painLevel")
    type: Optional[str] = None


RECORD_MODELS: Dict[str, Type[TrainingRecord]] = {
    "strength": StrengthRecord,
    "cardio": CardioRecord,
    "nutrition": NutritionRecord,
    "recovery": RecoveryRecord,
    "wrestling": WrestlingRecord,
    "injury": InjuryRecord,
}
