class BenchmarkError(Exception):
    """Base class for everything the benchmark raises on purpose."""


class ConfigurationError(BenchmarkError):
    pass


class StoreUnavailable(BenchmarkError):
    """A put or get against the record store failed, timed out or found nothing."""


class InvocationTimeout(BenchmarkError):
    pass


class InvocationFailed(BenchmarkError):
    def __init__(self, message, error_type=None):
        super().__init__(message)
        self.error_type = error_type


class DriverTimeout(BenchmarkError):
    """The run budget ran out while the invocation was still pending."""


class BenchmarkFailed(BenchmarkError):
    """No invocation succeeded in any variant."""

    def __init__(self, message, report):
        super().__init__(message)
        self.report = report
