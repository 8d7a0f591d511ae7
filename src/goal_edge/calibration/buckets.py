"""Bucketed calibration of signal strength against observed goal rates.

Strength (0-100) is split into ten buckets of width 10. Until a bucket has
accumulated samples it reports an empirical default rate.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from goal_edge.calibration.models import CalibrationBucket, CalibrationRecord, CalibrationTable
from goal_edge.common.types import utcnow

BUCKET_SIZE = 10
MAX_SIGNAL = 100

# A bucket counts as calibrated from this many samples
MIN_SAMPLE_SIZE = 30
# Confidence reaches 1.0 at this many samples
HIGH_CONFIDENCE_SIZE = 100
# Buckets that must be calibrated before the table is trusted
MIN_CALIBRATED_BUCKETS = 3

# Empirical goal rates used before any data is collected
_DEFAULT_GOAL_RATES = [0.10, 0.15, 0.20, 0.28, 0.35, 0.42, 0.50, 0.58, 0.68, 0.78]

DEFAULT_TABLE_VERSION = "v1.0-default"


def default_table(now: datetime | None = None) -> CalibrationTable:
    return CalibrationTable(
        version=DEFAULT_TABLE_VERSION,
        created_at=now or utcnow(),
        total_samples=0,
        buckets=[
            CalibrationBucket(
                signal_min=i * BUCKET_SIZE,
                signal_max=(i + 1) * BUCKET_SIZE,
                actual_goal_rate=rate,
            )
            for i, rate in enumerate(_DEFAULT_GOAL_RATES)
        ],
    )


def recalculate_table(
    records: list[CalibrationRecord], now: datetime | None = None,
) -> CalibrationTable:
    """Rebuild the bucket table from calibration records.

    Records with a strength outside [0, 100) are not counted in any bucket
    but still count toward total_samples.
    """
    now = now or utcnow()
    table = default_table(now)

    for record in records:
        if not 0 <= record.signal_strength < MAX_SIGNAL:
            continue
        bucket = table.buckets[int(record.signal_strength // BUCKET_SIZE)]
        bucket.sample_size += 1
        if record.is_hit:
            bucket.hit_count += 1

    for bucket in table.buckets:
        if bucket.sample_size > 0:
            bucket.actual_goal_rate = bucket.hit_count / bucket.sample_size
            bucket.confidence = min(1.0, bucket.sample_size / HIGH_CONFIDENCE_SIZE)
            bucket.last_updated = now

    table.version = f"v1.1-{int(now.timestamp() * 1000)}"
    table.total_samples = len(records)
    return table


@dataclass(frozen=True)
class CalibratedProbability:
    probability: int  # percent
    is_calibrated: bool
    confidence: float
    sample_size: int


def calibrated_probability(
    table: CalibrationTable, signal_strength: float,
) -> CalibratedProbability:
    """Look up the observed goal rate for a signal strength.

    Strengths at or above the top bucket use the last bucket.
    """
    bucket = next(
        (b for b in table.buckets if b.signal_min <= signal_strength < b.signal_max),
        table.buckets[-1],
    )
    return CalibratedProbability(
        probability=int(bucket.actual_goal_rate * 100 + 0.5),
        is_calibrated=bucket.sample_size >= MIN_SAMPLE_SIZE,
        confidence=bucket.confidence,
        sample_size=bucket.sample_size,
    )


@dataclass(frozen=True)
class BucketSummary:
    range: str
    samples: int
    hit_rate: int  # percent
    is_calibrated: bool


@dataclass(frozen=True)
class CalibrationSummary:
    total_records: int
    total_hits: int
    total_misses: int
    overall_hit_rate: int  # percent
    buckets: list[BucketSummary]
    ready_for_calibration: bool


def calibration_summary(
    records: list[CalibrationRecord], table: CalibrationTable,
) -> CalibrationSummary:
    """Summarize the calibration log and table for reporting."""
    total_hits = sum(1 for r in records if r.is_hit)
    calibrated = sum(1 for b in table.buckets if b.sample_size >= MIN_SAMPLE_SIZE)

    return CalibrationSummary(
        total_records=len(records),
        total_hits=total_hits,
        total_misses=len(records) - total_hits,
        overall_hit_rate=int(total_hits / len(records) * 100 + 0.5) if records else 0,
        buckets=[
            BucketSummary(
                range=f"{b.signal_min}-{b.signal_max}",
                samples=b.sample_size,
                hit_rate=int(b.actual_goal_rate * 100 + 0.5),
                is_calibrated=b.sample_size >= MIN_SAMPLE_SIZE,
            )
            for b in table.buckets
        ],
        ready_for_calibration=calibrated >= MIN_CALIBRATED_BUCKETS,
    )
