import json
import time

import boto3
from botocore.exceptions import ClientError, ConnectTimeoutError, ReadTimeoutError

from latency_benchmark.errors import (
    InvocationFailed,
    InvocationTimeout,
    StoreUnavailable,
)
from latency_benchmark.models import InvocationResult, Variant

# errorType values the Lambda service reports when a function hits its timeout
LAMBDA_TIMEOUT_ERRORS = ("Sandbox.Timedout", "TimeoutError")


class LambdaInvoker:
    def __init__(self, client):
        self.client = client

    @classmethod
    def from_config(cls, config):
        return cls(boto3.client("lambda", config=config.botocore_config()))

    def invoke(self, target_id, payload=None):
        try:
            response = self.client.invoke(
                FunctionName=target_id,
                InvocationType="RequestResponse",
                Payload=json.dumps(payload or {}),
            )
        except (ReadTimeoutError, ConnectTimeoutError) as err:
            raise InvocationTimeout("{} did not answer in time: {}".format(target_id, err)) from err
        except ClientError as err:
            code = err.response.get("Error", {}).get("Code", "")
            raise InvocationFailed("invoke {} failed: {}".format(target_id, err), code) from err

        body = response["Payload"].read()
        try:
            result = json.loads(body) if body else {}
        except ValueError as err:
            raise InvocationFailed("{} returned invalid JSON".format(target_id)) from err

        if "FunctionError" in response:
            raise function_error(target_id, result)
        return result


def function_error(target_id, result):
    if not isinstance(result, dict):
        result = {}
    error_type = result.get("errorType", "Unknown")
    message = "{}: {}: {}".format(target_id, error_type, result.get("errorMessage", ""))
    if error_type == StoreUnavailable.__name__:
        return StoreUnavailable(message)
    if error_type in LAMBDA_TIMEOUT_ERRORS or "Task timed out" in str(result.get("errorMessage", "")):
        return InvocationTimeout(message)
    return InvocationFailed(message, error_type)


class LocalInvoker:
    """Runs workload handlers in this process, keyed by target id."""

    def __init__(self, handlers):
        self.handlers = handlers

    def invoke(self, target_id, payload=None):
        try:
            handler = self.handlers[target_id]
        except KeyError:
            raise InvocationFailed("unknown target {}".format(target_id)) from None
        return handler.run().to_dict()


def parse_invocation_result(variant: Variant, payload, round_trip_ms=None) -> InvocationResult:
    if not isinstance(payload, dict):
        raise InvocationFailed("handler returned {} instead of an object".format(type(payload).__name__))
    if payload.get("variant") != variant.value:
        raise InvocationFailed(
            "expected a result for variant {}, got {!r}".format(variant.value, payload.get("variant"))
        )
    durations = {}
    for name in ("writeDurationMs", "readDurationMs", "totalDurationMs"):
        value = payload.get(name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvocationFailed("{} missing from handler result".format(name))
        if value < 0:
            raise InvocationFailed("{} is negative: {}".format(name, value))
        durations[name] = float(value)
    return InvocationResult(
        variant=variant,
        key=str(payload.get("key", "")),
        write_duration_ms=durations["writeDurationMs"],
        read_duration_ms=durations["readDurationMs"],
        total_duration_ms=durations["totalDurationMs"],
        timestamp=payload.get("timestamp", ""),
        cold_start=bool(payload.get("coldStart", False)),
        round_trip_ms=round_trip_ms,
    )


def invoke_and_time(invoker, variant, target_id, clock=time.perf_counter):
    """One invocation, returning the parsed result with the driver-side round trip."""
    start = clock()
    payload = invoker.invoke(target_id, {"variant": variant.value})
    round_trip_ms = max(0.0, (clock() - start) * 1000.0)
    return parse_invocation_result(variant, payload, round_trip_ms)
