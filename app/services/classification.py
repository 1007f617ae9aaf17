# app/services/classification.py
"""
MOT status classification for the dashboard.
Buckets: CRITICAL (vehicle is VOR), WARNING (MOT due within the window or
already expired), SAFE (everything else).
Derived on every read, never stored.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, Optional

from app.models.vehicle import VehicleStatus

DEFAULT_WARNING_DAYS = 14


class Bucket(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    SAFE = "safe"


@dataclass
class ClassifiedVehicle:
    vehicle: object           # Vehicle row (or anything with mot_expiry/status)
    bucket: Bucket
    days_remaining: Optional[int]


def days_until_expiry(mot_expiry: Optional[date], today: date) -> Optional[int]:
    """Whole days until MOT expiry; negative once expired, None when unknown."""
    if mot_expiry is None:
        return None
    return (mot_expiry - today).days


def classify(vehicle, today: date, warning_days: int = DEFAULT_WARNING_DAYS) -> ClassifiedVehicle:
    days = days_until_expiry(vehicle.mot_expiry, today)
    if vehicle.status == VehicleStatus.VOR:
        bucket = Bucket.CRITICAL
    elif days is None or days <= warning_days:
        bucket = Bucket.WARNING
    else:
        bucket = Bucket.SAFE
    return ClassifiedVehicle(vehicle=vehicle, bucket=bucket, days_remaining=days)


def group_by_bucket(vehicles: Iterable, today: date,
                    warning_days: int = DEFAULT_WARNING_DAYS) -> dict[Bucket, list[ClassifiedVehicle]]:
    """Split vehicles into the three buckets. Input order is kept inside each bucket."""
    groups = {bucket: [] for bucket in Bucket}
    for vehicle in vehicles:
        item = classify(vehicle, today, warning_days)
        groups[item.bucket].append(item)
    return groups
