"""
Device registry.

In-memory index from device identity to device aggregate. Readers share
the registry lock; writers take it exclusively. Devices are never removed
and never mutated through the registry.
"""

import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from .device import SignatureDevice


class ReadWriteLock:
    """
    Reader-writer lock: any number of readers, or one writer.

    Waiting writers block new readers so a steady read load cannot starve
    a writer.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class DeviceRegistry(ABC):
    """Abstract interface for device storage."""

    @abstractmethod
    def set(self, device_id: uuid.UUID, device: SignatureDevice) -> None:
        """Insert or replace the device stored under device_id."""
        pass

    @abstractmethod
    def get(self, device_id: uuid.UUID) -> Optional[SignatureDevice]:
        """Return the device for device_id, or None if absent."""
        pass

    @abstractmethod
    def get_all(self) -> List[SignatureDevice]:
        """Return a snapshot list of all devices."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    def __contains__(self, device_id: uuid.UUID) -> bool:
        return self.get(device_id) is not None


class InMemoryDeviceRegistry(DeviceRegistry):
    """
    Process-local device registry.

    get_all returns references; callers may keep using them after the
    registry lock is released because each device serializes its own
    mutation.
    """

    def __init__(self):
        self._devices: Dict[uuid.UUID, SignatureDevice] = {}
        self._lock = ReadWriteLock()

    def set(self, device_id: uuid.UUID, device: SignatureDevice) -> None:
        with self._lock.write_locked():
            self._devices[device_id] = device

    def get(self, device_id: uuid.UUID) -> Optional[SignatureDevice]:
        with self._lock.read_locked():
            return self._devices.get(device_id)

    def get_all(self) -> List[SignatureDevice]:
        with self._lock.read_locked():
            return list(self._devices.values())

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._devices)
