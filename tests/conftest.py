import pytest

from latency_benchmark.config import DriverConfig, StoreConfig
from latency_benchmark.models import Variant


@pytest.fixture
def store_config():
    return StoreConfig(table_name="testing-table", variant=Variant.A)


@pytest.fixture
def driver_config():
    return DriverConfig(
        targets={Variant.A: "fn-a", Variant.B: "fn-b"},
        invocations_per_variant=5,
        concurrency=2,
        run_timeout_seconds=30,
    )
