import datetime
import enum
from dataclasses import dataclass, field
from typing import List, Optional


class Variant(str, enum.Enum):
    A = "A"
    B = "B"


class InvocationState(str, enum.Enum):
    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"


def utc_now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@dataclass(frozen=True)
class Record:
    key: str
    timestamp: str
    variant: Variant
    filler: bytes

    def to_dict(self, key_attribute="pk"):
        return {
            key_attribute: self.key,
            "timestamp": self.timestamp,
            "variant": self.variant.value,
            "filler": self.filler,
        }

    @classmethod
    def from_dict(cls, raw, key_attribute="pk"):
        return cls(
            key=raw[key_attribute],
            timestamp=raw["timestamp"],
            variant=Variant(raw["variant"]),
            filler=bytes(raw["filler"]),
        )


@dataclass(frozen=True)
class InvocationResult:
    """Timing of one write-then-read cycle, as reported by a workload handler."""

    variant: Variant
    key: str
    write_duration_ms: float
    read_duration_ms: float
    total_duration_ms: float
    timestamp: str
    cold_start: bool = False
    # filled in by the driver; the handler cannot see its own invoke overhead
    round_trip_ms: Optional[float] = None

    def to_dict(self):
        return {
            "variant": self.variant.value,
            "key": self.key,
            "writeDurationMs": self.write_duration_ms,
            "readDurationMs": self.read_duration_ms,
            "totalDurationMs": self.total_duration_ms,
            "roundTripMs": self.round_trip_ms,
            "coldStart": self.cold_start,
            "timestamp": self.timestamp,
        }


@dataclass
class InvocationOutcome:
    variant: Variant
    state: InvocationState = InvocationState.PENDING
    result: Optional[InvocationResult] = None
    error: Optional[Exception] = None

    @property
    def error_type(self):
        return type(self.error).__name__ if self.error is not None else None


@dataclass(frozen=True)
class DurationStats:
    min: float
    avg: float
    max: float
    p50: float
    p99: float

    def to_dict(self):
        return {
            "min": self.min,
            "avg": self.avg,
            "max": self.max,
            "p50": self.p50,
            "p99": self.p99,
        }


@dataclass(frozen=True)
class AggregateReport:
    variant: Variant
    count: int
    failure_count: int
    timed_out_count: int
    cold_start_count: int
    write: Optional[DurationStats]
    read: Optional[DurationStats]
    total: Optional[DurationStats]
    round_trip: Optional[DurationStats]

    def to_dict(self):
        def stats(value):
            return value.to_dict() if value is not None else None

        return {
            "variant": self.variant.value,
            "count": self.count,
            "failureCount": self.failure_count,
            "timedOutCount": self.timed_out_count,
            "coldStartCount": self.cold_start_count,
            "write": stats(self.write),
            "read": stats(self.read),
            "total": stats(self.total),
            "roundTrip": stats(self.round_trip),
        }


@dataclass
class RunReport:
    run_id: str
    started_at: str
    finished_at: str
    elapsed_ms: float
    reports: List[AggregateReport] = field(default_factory=list)

    @property
    def success_count(self):
        return sum(report.count for report in self.reports)

    def for_variant(self, variant):
        for report in self.reports:
            if report.variant == variant:
                return report
        raise KeyError(variant)

    def to_dict(self):
        return {
            "runId": self.run_id,
            "startedAt": self.started_at,
            "finishedAt": self.finished_at,
            "elapsedMs": self.elapsed_ms,
            "reports": [report.to_dict() for report in self.reports],
        }
