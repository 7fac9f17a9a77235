"""Write/read latency benchmark for two serverless runtime variants."""

__version__ = "0.1.0"
