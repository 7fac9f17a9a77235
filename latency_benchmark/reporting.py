"""Destinations for finished run reports."""
import datetime
import json
import logging

from latency_benchmark.items import dict_to_item

logger = logging.getLogger(__name__)


class LogReportSink:
    def emit(self, report):
        logger.info(json.dumps(report.to_dict()))


class DynamoReportSink:
    """One item per variant, queryable by ``REPORT|<variant>`` and time."""

    def __init__(self, client, table_name, ttl_days=60, now=datetime.datetime.now):
        self.client = client
        self.table_name = table_name
        self.ttl_days = ttl_days
        self.now = now

    def emit(self, report):
        current_timestamp = self.now()
        expiration_timestamp = current_timestamp + datetime.timedelta(days=self.ttl_days)
        for aggregate in report.reports:
            item = {
                "PK": "REPORT|" + aggregate.variant.value,
                "SK": current_timestamp.timestamp(),
                "Type": "REPORT",
                "RunId": report.run_id,
                "Report": aggregate.to_dict(),
                "TTL": int(expiration_timestamp.timestamp()),
            }
            self.client.put_item(
                TableName=self.table_name,
                Item=dict_to_item(item)
            )


class S3ReportSink:
    def __init__(self, client, bucket, prefix="reports", now=datetime.datetime.now):
        self.client = client
        self.bucket = bucket
        self.prefix = prefix
        self.now = now

    def key_for(self, report):
        current_timestamp = self.now()
        return "/".join([
            self.prefix,
            str(current_timestamp.year),
            str(current_timestamp.month),
            str(current_timestamp.day),
            str(current_timestamp.hour),
            "{}-{}.json".format(current_timestamp.minute, report.run_id),
        ])

    def emit(self, report):
        self.client.put_object(
            Body=json.dumps(report.to_dict()).encode("UTF-8"),
            Bucket=self.bucket,
            Key=self.key_for(report)
        )


def emit_all(sinks, report):
    """Hand the report to every sink; one broken sink does not stop the others."""
    delivered = 0
    for sink in sinks:
        try:
            sink.emit(report)
            delivered += 1
        except Exception:
            logger.exception("Report sink %s failed", type(sink).__name__)
    return delivered
