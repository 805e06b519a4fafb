"""
Error taxonomy for the instance-management layer.

Every failure surfaces to the caller as a HoloServiceError subclass; the
underlying OS or parse error, when there is one, is chained as __cause__.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class HoloServiceError(Exception):
    """Base class for all holoservice errors."""


class NotInitialized(HoloServiceError):
    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(f"service not initialized at {self.path}")


class AlreadyInitialized(HoloServiceError):
    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(f"service already initialized at {self.path}")


class ConfigInvalid(HoloServiceError):
    pass


class AlreadyExists(HoloServiceError):
    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(f"{self.path} already exists")


class NoDNAFile(HoloServiceError):
    def __init__(self, dna_dir: PathLike):
        self.dna_dir = Path(dna_dir)
        super().__init__(f"No DNA file in {self.dna_dir}/")


class AgentLoadFailure(HoloServiceError):
    def __init__(self, path: PathLike, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"unable to load agent from {self.path}: {reason}")


class CopyFailure(HoloServiceError):
    def __init__(self, src: PathLike, dst: PathLike, error: Optional[BaseException] = None):
        self.src = Path(src)
        self.dst = Path(dst)
        self.error = error
        detail = f": {error}" if error is not None else ""
        super().__init__(f"copy {self.src} -> {self.dst} failed{detail}")


class StoreUnreadable(HoloServiceError):
    def __init__(self, path: PathLike, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"unable to read store {self.path}: {reason}")


class ScaffoldVersionMismatch(HoloServiceError):
    def __init__(self, found: str, expected: str):
        self.found = found
        self.expected = expected
        super().__init__(
            f"scaffold version mismatch: got {found!r}, this service supports {expected!r}"
        )


class ScaffoldParseError(HoloServiceError):
    pass


class EnvOverrideParseError(HoloServiceError):
    def __init__(self, key: str, value: str, expected: str):
        self.key = key
        self.value = value
        super().__init__(f"override {key}={value!r} is not a valid {expected}")


class InconsistentChain(HoloServiceError):
    pass


class UnknownEncoding(HoloServiceError, ValueError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown encoding format: {name!r}")
