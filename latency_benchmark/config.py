import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from botocore.config import Config

from latency_benchmark.errors import ConfigurationError
from latency_benchmark.models import Variant

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# 15 minutes is the longest timeout a Lambda function can have
DEFAULT_RUN_TIMEOUT_SECONDS = 15 * 60


@dataclass(frozen=True)
class StoreConfig:
    """Settings of one workload handler deployment."""

    table_name: str
    variant: Variant
    key_attribute: str = "pk"
    filler_bytes: int = 100
    timeout_seconds: float = 5.0
    region: Optional[str] = None

    def __post_init__(self):
        if not self.table_name:
            raise ConfigurationError("table name is required")
        if self.filler_bytes < 0:
            raise ConfigurationError("filler size must not be negative")
        _require_positive("store timeout", self.timeout_seconds)

    @classmethod
    def from_env(cls, environ=None):
        environ = os.environ if environ is None else environ
        return cls(
            table_name=environ.get("TABLE_NAME", ""),
            variant=parse_variant(environ.get("VARIANT", "")),
            key_attribute=environ.get("KEY_ATTRIBUTE", "pk"),
            filler_bytes=_int(environ, "FILLER_BYTES", 100),
            timeout_seconds=_float(environ, "STORE_TIMEOUT_SECONDS", 5.0),
            region=environ.get("AWS_REGION"),
        )

    def botocore_config(self):
        return Config(
            region_name=self.region,
            connect_timeout=self.timeout_seconds,
            read_timeout=self.timeout_seconds,
            retries={"total_max_attempts": 1},
        )


@dataclass(frozen=True)
class DriverConfig:
    targets: Dict[Variant, str]
    invocations_per_variant: int = 10
    concurrency: int = 1
    invocation_timeout_seconds: float = 30.0
    run_timeout_seconds: float = DEFAULT_RUN_TIMEOUT_SECONDS
    results_table_name: Optional[str] = None
    backup_bucket_name: Optional[str] = None
    log_level: str = "INFO"
    region: Optional[str] = None
    variants: tuple = field(default=(Variant.A, Variant.B))

    def __post_init__(self):
        for variant in self.variants:
            if not self.targets.get(variant):
                raise ConfigurationError("no target function for variant {}".format(variant.value))
        if self.invocations_per_variant < 1:
            raise ConfigurationError("invocations per variant must be at least 1")
        if self.concurrency < 1:
            raise ConfigurationError("concurrency must be at least 1")
        _require_positive("invocation timeout", self.invocation_timeout_seconds)
        _require_positive("run timeout", self.run_timeout_seconds)

    @classmethod
    def from_env(cls, environ=None):
        environ = os.environ if environ is None else environ
        return cls(
            targets={
                Variant.A: environ.get("VARIANT_A_FUNCTION", ""),
                Variant.B: environ.get("VARIANT_B_FUNCTION", ""),
            },
            invocations_per_variant=_int(environ, "INVOCATIONS_PER_VARIANT", 10),
            concurrency=_int(environ, "CONCURRENCY", 1),
            invocation_timeout_seconds=_float(environ, "INVOCATION_TIMEOUT_SECONDS", 30.0),
            run_timeout_seconds=_float(environ, "RUN_TIMEOUT_SECONDS", DEFAULT_RUN_TIMEOUT_SECONDS),
            results_table_name=environ.get("RESULTS_TABLE_NAME") or None,
            backup_bucket_name=environ.get("BACKUP_BUCKET_NAME") or None,
            log_level=environ.get("LOG_LEVEL", "INFO"),
            region=environ.get("AWS_REGION"),
        )

    @classmethod
    def from_file(cls, path):
        """Load the operator config, e.g. ``configurations/config.json``."""
        with open(path) as json_file:
            configs = json.load(json_file)
        targets = configs.get("Targets", {})
        try:
            return cls(
                targets={parse_variant(k): v for k, v in targets.items()},
                invocations_per_variant=int(configs.get("InvocationsPerVariant", 10)),
                concurrency=int(configs.get("Concurrency", 1)),
                invocation_timeout_seconds=float(configs.get("InvocationTimeoutSeconds", 30.0)),
                run_timeout_seconds=float(configs.get("RunTimeoutSeconds", DEFAULT_RUN_TIMEOUT_SECONDS)),
                results_table_name=configs.get("ResultsTableName"),
                backup_bucket_name=configs.get("BackupBucketName"),
                log_level=configs.get("LogLevel", "INFO"),
                region=configs.get("Region"),
            )
        except (TypeError, ValueError) as err:
            raise ConfigurationError("invalid config file {}: {}".format(path, err)) from err

    def botocore_config(self):
        # the invoke timeout is the client's read timeout; a failed sample is
        # never retried
        return Config(
            region_name=self.region,
            read_timeout=self.invocation_timeout_seconds,
            retries={"total_max_attempts": 1},
            max_pool_connections=max(10, self.concurrency),
        )


def parse_variant(value):
    try:
        return Variant(str(value).upper())
    except ValueError:
        raise ConfigurationError("unknown variant {!r}, expected A or B".format(value)) from None


def configure_logging(level="INFO"):
    # the Lambda runtime installs its own root handler, in which case
    # basicConfig is a no-op and only the level applies
    logging.basicConfig(format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    logging.getLogger().setLevel(level.upper())


def _int(environ, name, default):
    value = environ.get(name)
    if value in (None, ""):
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError("{} must be an integer, got {!r}".format(name, value)) from None


def _float(environ, name, default):
    value = environ.get(name)
    if value in (None, ""):
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError("{} must be a number, got {!r}".format(name, value)) from None


def _require_positive(name, value):
    if value <= 0:
        raise ConfigurationError("{} must be positive".format(name))
