"""Tests for report sinks."""

import datetime
import json
import logging
from unittest.mock import MagicMock

from latency_benchmark.models import AggregateReport, DurationStats, RunReport, Variant
from latency_benchmark.reporting import DynamoReportSink, LogReportSink, S3ReportSink, emit_all

NOW = datetime.datetime(2026, 10, 18, 7, 5, 0)


def make_report():
    stats = DurationStats(min=1.0, avg=2.0, max=3.0, p50=2.0, p99=3.0)
    return RunReport(
        run_id="run1",
        started_at="2026-10-18T07:00:00+00:00",
        finished_at="2026-10-18T07:05:00+00:00",
        elapsed_ms=300000.0,
        reports=[
            AggregateReport(Variant.A, 2, 1, 0, 1, stats, stats, stats, stats),
            AggregateReport(Variant.B, 0, 3, 3, 0, None, None, None, None),
        ],
    )


def test_log_sink(caplog):
    with caplog.at_level(logging.INFO, logger="latency_benchmark.reporting"):
        LogReportSink().emit(make_report())
    data = json.loads(caplog.records[-1].getMessage())
    assert data["runId"] == "run1"
    assert data["reports"][1]["timedOutCount"] == 3


def test_dynamo_sink_writes_one_item_per_variant():
    client = MagicMock()
    DynamoReportSink(client, "results", now=lambda: NOW).emit(make_report())

    assert client.put_item.call_count == 2
    item = client.put_item.call_args_list[0].kwargs["Item"]
    assert item["PK"] == {"S": "REPORT|A"}
    assert item["SK"] == {"N": str(NOW.timestamp())}
    assert item["Type"] == {"S": "REPORT"}
    assert item["Report"]["M"]["count"] == {"N": "2"}
    assert item["TTL"] == {"N": str(int((NOW + datetime.timedelta(days=60)).timestamp()))}
    missing = client.put_item.call_args_list[1].kwargs["Item"]
    assert missing["Report"]["M"]["write"] == {"NULL": True}


def test_s3_sink_key_layout():
    client = MagicMock()
    S3ReportSink(client, "backup", now=lambda: NOW).emit(make_report())

    kwargs = client.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "backup"
    assert kwargs["Key"] == "reports/2026/10/18/7/5-run1.json"
    assert json.loads(kwargs["Body"])["runId"] == "run1"


def test_broken_sink_does_not_stop_the_others():
    broken = MagicMock()
    broken.emit.side_effect = RuntimeError("no route")
    working = MagicMock()

    delivered = emit_all([broken, working], make_report())

    assert delivered == 1
    working.emit.assert_called_once()
