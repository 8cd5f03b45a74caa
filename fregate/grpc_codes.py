"""gRPC status codes and their textual forms."""

from __future__ import annotations

import enum

__all__ = ["GrpcCode", "GRPC_CODES", "grpc_code_to_str", "grpc_code_to_num"]


class GrpcCode(enum.IntEnum):
    """gRPC response status codes."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16

    @classmethod
    def _missing_(cls, value: object) -> GrpcCode | None:
        # Any integer outside the known range maps to UNKNOWN.
        if isinstance(value, int):
            return cls.UNKNOWN
        return None


GRPC_CODES: tuple[GrpcCode, ...] = tuple(GrpcCode)

_NAMES = {
    GrpcCode.OK: "Ok",
    GrpcCode.CANCELLED: "Cancelled",
    GrpcCode.UNKNOWN: "Unknown",
    GrpcCode.INVALID_ARGUMENT: "InvalidArgument",
    GrpcCode.DEADLINE_EXCEEDED: "DeadlineExceeded",
    GrpcCode.NOT_FOUND: "NotFound",
    GrpcCode.ALREADY_EXISTS: "AlreadyExists",
    GrpcCode.PERMISSION_DENIED: "PermissionDenied",
    GrpcCode.RESOURCE_EXHAUSTED: "ResourceExhausted",
    GrpcCode.FAILED_PRECONDITION: "FailedPrecondition",
    GrpcCode.ABORTED: "Aborted",
    GrpcCode.OUT_OF_RANGE: "OutOfRange",
    GrpcCode.UNIMPLEMENTED: "Unimplemented",
    GrpcCode.INTERNAL: "Internal",
    GrpcCode.UNAVAILABLE: "Unavailable",
    GrpcCode.DATA_LOSS: "DataLoss",
    GrpcCode.UNAUTHENTICATED: "Unauthenticated",
}


def grpc_code_to_str(code: GrpcCode | int) -> str:
    """Return the name of a gRPC code, e.g. ``"InvalidArgument"``."""
    return _NAMES[GrpcCode(code)]


def grpc_code_to_num(code: GrpcCode | int) -> str:
    """Return a gRPC code as a decimal string, e.g. ``"3"``."""
    return str(GrpcCode(code).value)