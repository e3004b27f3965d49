"""Identifier generators for calls made without an explicit id."""

import itertools
import secrets
import threading
import uuid
from abc import ABC, abstractmethod

from relay.protocol.base import RequestId

MAX_RANDOM_ID = 2**31


class IdGenerator(ABC):
    """Produces request identifiers. Implementations must be thread-safe."""

    @abstractmethod
    def generate(self) -> RequestId:
        pass


class SequentialIdGenerator(IdGenerator):
    """Counts up from a starting integer."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def generate(self) -> int:
        with self._lock:
            return next(self._counter)


class RandomIntIdGenerator(IdGenerator):
    """Random positive integers that fit in a signed 32-bit field."""

    def generate(self) -> int:
        return secrets.randbelow(MAX_RANDOM_ID - 1) + 1


class UuidIdGenerator(IdGenerator):
    def generate(self) -> str:
        return str(uuid.uuid4())
