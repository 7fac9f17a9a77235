"""Benchmark driver.

Invokes the workload handler of each variant ``invocations_per_variant``
times, one variant after the other so the two never compete for the shared
table, and reduces the outcomes to one ``AggregateReport`` per variant.

A single failed or slow invocation never aborts the run: it is recorded as
``FAILED`` or ``TIMED_OUT`` and left out of the statistics. Only a run in
which nothing succeeded at all raises ``BenchmarkFailed``.
"""
import json
import logging
import os
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, wait

import boto3

from latency_benchmark.config import DriverConfig, configure_logging
from latency_benchmark.errors import BenchmarkFailed, DriverTimeout, InvocationTimeout
from latency_benchmark.invoker import LambdaInvoker, invoke_and_time
from latency_benchmark.models import InvocationOutcome, InvocationState, RunReport, utc_now_iso
from latency_benchmark.reporting import DynamoReportSink, LogReportSink, S3ReportSink, emit_all
from latency_benchmark.stats import aggregate

logger = logging.getLogger(__name__)

CONFIG_PATH = "./configurations/config.json"

# time kept back from the Lambda deadline to aggregate and emit the report
REPORT_MARGIN_SECONDS = 10


class BenchmarkDriver:
    def __init__(self, config: DriverConfig, invoker, sinks=None, clock=time.monotonic):
        self.config = config
        self.invoker = invoker
        self.sinks = list(sinks) if sinks is not None else [LogReportSink()]
        self.clock = clock

    def run(self, budget_seconds=None) -> RunReport:
        if budget_seconds is None:
            budget_seconds = self.config.run_timeout_seconds
        run_id = uuid.uuid4().hex
        started_at = utc_now_iso()
        start = self.clock()
        deadline = start + budget_seconds
        logger.info(
            "Run %s: %d invocations per variant, concurrency %d, budget %.0fs",
            run_id,
            self.config.invocations_per_variant,
            self.config.concurrency,
            budget_seconds,
        )

        outcomes = []
        for variant in self.config.variants:
            outcomes.extend(self.run_batch(variant, deadline))

        report = RunReport(
            run_id=run_id,
            started_at=started_at,
            finished_at=utc_now_iso(),
            elapsed_ms=(self.clock() - start) * 1000.0,
            reports=[aggregate(variant, outcomes) for variant in self.config.variants],
        )
        emit_all(self.sinks, report)

        if report.success_count == 0:
            raise BenchmarkFailed("run {}: no invocation succeeded".format(run_id), report)
        return report

    def run_batch(self, variant, deadline):
        target = self.config.targets[variant]
        count = self.config.invocations_per_variant
        remaining = deadline - self.clock()
        if remaining <= 0:
            logger.warning("Run budget exhausted before variant %s started", variant.value)
            return [self.timed_out(variant) for _ in range(count)]

        logger.info("Benchmarking variant %s (%s)", variant.value, target)
        executor = ThreadPoolExecutor(
            max_workers=min(self.config.concurrency, count),
            thread_name_prefix="invoke-" + variant.value,
        )
        futures = [executor.submit(self.invoke_one, variant, target) for _ in range(count)]
        done, not_done = wait(futures, timeout=remaining)
        # do not block on calls still in flight, their results are discarded
        executor.shutdown(wait=False, cancel_futures=True)

        outcomes = []
        for future in futures:
            if future in done:
                outcomes.append(future.result())
            else:
                future.cancel()
                outcomes.append(self.timed_out(variant))
        if not_done:
            logger.warning("Run budget expired with %d invocations of %s pending", len(not_done), variant.value)

        succeeded = sum(1 for o in outcomes if o.state == InvocationState.SUCCEEDED)
        logger.info("Variant %s: %d/%d succeeded", variant.value, succeeded, count)
        return outcomes

    def invoke_one(self, variant, target):
        outcome = InvocationOutcome(variant)
        try:
            outcome.result = invoke_and_time(self.invoker, variant, target)
            outcome.state = InvocationState.SUCCEEDED
        except InvocationTimeout as err:
            outcome.state = InvocationState.TIMED_OUT
            outcome.error = err
            logger.warning("Invocation of %s timed out: %s", target, err)
        except Exception as err:
            outcome.state = InvocationState.FAILED
            outcome.error = err
            logger.warning("Invocation of %s failed: %s: %s", target, type(err).__name__, err)
        return outcome

    def timed_out(self, variant):
        return InvocationOutcome(
            variant,
            state=InvocationState.TIMED_OUT,
            error=DriverTimeout("run budget expired before the invocation finished"),
        )


def build_sinks(config):
    sinks = [LogReportSink()]
    if config.results_table_name:
        sinks.append(DynamoReportSink(boto3.client("dynamodb", region_name=config.region), config.results_table_name))
    if config.backup_bucket_name:
        sinks.append(S3ReportSink(boto3.client("s3", region_name=config.region), config.backup_bucket_name))
    return sinks


def build_driver(config):
    return BenchmarkDriver(config, LambdaInvoker.from_config(config), build_sinks(config))


def run_budget(config, context):
    """The configured budget, cut short to leave time for reporting before Lambda kills the driver."""
    budget = config.run_timeout_seconds
    if context is not None and hasattr(context, "get_remaining_time_in_millis"):
        remaining = context.get_remaining_time_in_millis() / 1000.0
        budget = min(budget, remaining - REPORT_MARGIN_SECONDS)
    return budget


def lambda_handler(event, context):
    config = DriverConfig.from_env()
    configure_logging(config.log_level)
    return build_driver(config).run(run_budget(config, context)).to_dict()


def main():
    path = os.environ.get("BENCHMARK_CONFIG", CONFIG_PATH)
    config = DriverConfig.from_file(path) if os.path.exists(path) else DriverConfig.from_env()
    configure_logging(config.log_level)
    report = build_driver(config).run()
    print(json.dumps(report.to_dict(), indent=2))


if __name__ == "__main__":
    main()
