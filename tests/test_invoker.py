"""Tests for Lambda and in-process invokers."""

import io
import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, ReadTimeoutError

from latency_benchmark.errors import InvocationFailed, InvocationTimeout, StoreUnavailable
from latency_benchmark.invoker import LambdaInvoker, LocalInvoker, invoke_and_time, parse_invocation_result
from latency_benchmark.models import Variant
from latency_benchmark.workload import WorkloadHandler
from tests.fakes import FakeStore, handler_payload


def lambda_response(body, function_error=None):
    response = {"StatusCode": 200, "Payload": io.BytesIO(json.dumps(body).encode())}
    if function_error:
        response["FunctionError"] = function_error
    return response


class TestLambdaInvoker:
    def test_success(self):
        client = MagicMock()
        client.invoke.return_value = lambda_response(handler_payload("A", 10, 5))

        result = LambdaInvoker(client).invoke("fn-a", {"variant": "A"})

        assert result["writeDurationMs"] == 10
        client.invoke.assert_called_once_with(
            FunctionName="fn-a", InvocationType="RequestResponse", Payload='{"variant": "A"}'
        )

    def test_store_unavailable_in_handler(self):
        client = MagicMock()
        client.invoke.return_value = lambda_response(
            {"errorType": "StoreUnavailable", "errorMessage": "record x not found right after write"},
            function_error="Unhandled",
        )
        with pytest.raises(StoreUnavailable, match="not found"):
            LambdaInvoker(client).invoke("fn-a")

    def test_function_timeout(self):
        client = MagicMock()
        client.invoke.return_value = lambda_response(
            {"errorType": "Sandbox.Timedout", "errorMessage": "Task timed out after 3.00 seconds"},
            function_error="Unhandled",
        )
        with pytest.raises(InvocationTimeout):
            LambdaInvoker(client).invoke("fn-a")

    def test_other_function_error(self):
        client = MagicMock()
        client.invoke.return_value = lambda_response(
            {"errorType": "KeyError", "errorMessage": "'TABLE_NAME'"}, function_error="Unhandled"
        )
        with pytest.raises(InvocationFailed) as excinfo:
            LambdaInvoker(client).invoke("fn-a")
        assert excinfo.value.error_type == "KeyError"

    def test_read_timeout(self):
        client = MagicMock()
        client.invoke.side_effect = ReadTimeoutError(endpoint_url="https://lambda.us-east-1.amazonaws.com")
        with pytest.raises(InvocationTimeout):
            LambdaInvoker(client).invoke("fn-a")

    def test_client_error(self):
        client = MagicMock()
        client.invoke.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "Function not found"}}, "Invoke"
        )
        with pytest.raises(InvocationFailed) as excinfo:
            LambdaInvoker(client).invoke("missing")
        assert excinfo.value.error_type == "ResourceNotFoundException"

    def test_invalid_json(self):
        client = MagicMock()
        client.invoke.return_value = {"StatusCode": 200, "Payload": io.BytesIO(b"not json")}
        with pytest.raises(InvocationFailed):
            LambdaInvoker(client).invoke("fn-a")


class TestParseInvocationResult:
    def test_valid(self):
        result = parse_invocation_result(Variant.B, handler_payload("B", 3, 2, cold_start=True), 40.0)
        assert result.variant == Variant.B
        assert result.total_duration_ms == 5
        assert result.round_trip_ms == 40.0
        assert result.cold_start is True

    def test_wrong_variant(self):
        with pytest.raises(InvocationFailed, match="variant A"):
            parse_invocation_result(Variant.A, handler_payload("B", 3, 2))

    def test_negative_duration(self):
        with pytest.raises(InvocationFailed, match="negative"):
            parse_invocation_result(Variant.A, handler_payload("A", -1, 2))

    def test_missing_duration(self):
        payload = handler_payload("A", 1, 2)
        del payload["readDurationMs"]
        with pytest.raises(InvocationFailed, match="readDurationMs"):
            parse_invocation_result(Variant.A, payload)

    def test_not_an_object(self):
        with pytest.raises(InvocationFailed):
            parse_invocation_result(Variant.A, "")


class TestLocalInvoker:
    def test_runs_handler_in_process(self, store_config):
        invoker = LocalInvoker({"local-a": WorkloadHandler(store_config, FakeStore())})

        result = invoke_and_time(invoker, Variant.A, "local-a")

        assert result.variant == Variant.A
        assert result.round_trip_ms >= 0

    def test_unknown_target(self):
        with pytest.raises(InvocationFailed, match="unknown target"):
            LocalInvoker({}).invoke("nowhere")
