"""Building blocks for HTTP and gRPC services: header filtering, JSON logging, request tracing, trace propagation, proxying and metrics."""

__version__ = "0.1.0"