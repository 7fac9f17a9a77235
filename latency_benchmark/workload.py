"""Workload handler: write one record, read it back, time both calls.

Both runtime variants deploy this same module; only ``VARIANT`` and the
execution environment differ between them.
"""
import json
import logging
import os
import threading
import time
import uuid

from latency_benchmark.config import StoreConfig, configure_logging
from latency_benchmark.errors import StoreUnavailable
from latency_benchmark.models import InvocationResult, Record, utc_now_iso
from latency_benchmark.store import DynamoRecordStore

logger = logging.getLogger(__name__)


def new_key():
    return uuid.uuid4().hex


def elapsed_ms(start, end):
    return max(0.0, (end - start) * 1000.0)


class WorkloadHandler:
    def __init__(self, config: StoreConfig, store, clock=time.perf_counter):
        self.config = config
        self.store = store
        self.clock = clock
        # generated once per execution environment, like any other init work
        self.filler = os.urandom(config.filler_bytes)
        self.invocations = 0
        self._lock = threading.Lock()

    def run(self) -> InvocationResult:
        with self._lock:
            cold_start = self.invocations == 0
            self.invocations += 1

        started = self.clock()
        record = Record(
            key=new_key(),
            timestamp=utc_now_iso(),
            variant=self.config.variant,
            filler=self.filler,
        )

        write_start = self.clock()
        self.store.put(record)
        write_end = self.clock()
        write_ms = elapsed_ms(write_start, write_end)
        logger.debug("Write db record in %.3f ms", write_ms)

        read_start = self.clock()
        stored = self.store.get(record.key)
        read_end = self.clock()
        read_ms = elapsed_ms(read_start, read_end)
        logger.debug("Read db record in %.3f ms", read_ms)

        if stored is None:
            raise StoreUnavailable("record {} not found right after write".format(record.key))

        result = InvocationResult(
            variant=self.config.variant,
            key=record.key,
            write_duration_ms=write_ms,
            read_duration_ms=read_ms,
            total_duration_ms=elapsed_ms(started, read_end),
            timestamp=record.timestamp,
            cold_start=cold_start,
        )
        logger.info(json.dumps(result.to_dict()))
        return result


_handler = None


def get_handler():
    # one handler per execution environment so warm invocations reuse the
    # DynamoDB connection
    global _handler
    if _handler is None:
        config = StoreConfig.from_env()
        _handler = WorkloadHandler(config, DynamoRecordStore.from_config(config))
    return _handler


def lambda_handler(event, context):
    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))
    return get_handler().run().to_dict()
