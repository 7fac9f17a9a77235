import math
import statistics

from latency_benchmark.models import AggregateReport, DurationStats, InvocationState


def percentile(ordered, pct):
    """Nearest-rank percentile of an already sorted, non-empty sequence."""
    rank = max(1, math.ceil(pct * len(ordered) / 100.0))
    return ordered[rank - 1]


def summarize(values):
    values = [v for v in values if v is not None]
    if not values:
        return None
    ordered = sorted(values)
    # fmean can land one ulp outside [min, max]
    avg = min(max(statistics.fmean(ordered), ordered[0]), ordered[-1])
    return DurationStats(
        min=ordered[0],
        avg=avg,
        max=ordered[-1],
        p50=percentile(ordered, 50),
        p99=percentile(ordered, 99),
    )


def aggregate(variant, outcomes) -> AggregateReport:
    outcomes = [o for o in outcomes if o.variant == variant]
    results = [o.result for o in outcomes if o.state == InvocationState.SUCCEEDED and o.result is not None]
    timed_out = sum(1 for o in outcomes if o.state == InvocationState.TIMED_OUT)
    failed = sum(1 for o in outcomes if o.state == InvocationState.FAILED)
    return AggregateReport(
        variant=variant,
        count=len(results),
        failure_count=failed + timed_out,
        timed_out_count=timed_out,
        cold_start_count=sum(1 for r in results if r.cold_start),
        write=summarize(r.write_duration_ms for r in results),
        read=summarize(r.read_duration_ms for r in results),
        total=summarize(r.total_duration_ms for r in results),
        round_trip=summarize(r.round_trip_ms for r in results),
    )
