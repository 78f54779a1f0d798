"""
Signing service: the boundary the HTTP layer calls into.

Implements the four transport operations (create device, sign data,
list devices, get device) on top of an injected device registry.
Public keys cross this boundary as key objects; serialization is left to
the transport.
"""

import uuid
from dataclasses import dataclass
from typing import List, Optional, Union

from .device import SignatureDevice
from .errors import DeviceNotFoundError
from .registry import DeviceRegistry, InMemoryDeviceRegistry
from .signers import DEFAULT_RSA_KEY_SIZE, PublicKey, create_signer
from .util import parse_device_id


@dataclass(frozen=True)
class DeviceInfo:
    """Read-only view of a signature device."""
    id: uuid.UUID
    label: str
    algorithm: str
    public_key: PublicKey
    signature_counter: int

    @classmethod
    def from_device(cls, device: SignatureDevice) -> 'DeviceInfo':
        return cls(
            id=device.id,
            label=device.label,
            algorithm=device.algorithm,
            public_key=device.public_key,
            signature_counter=device.counter,
        )


@dataclass(frozen=True)
class SignatureResult:
    """Canonical data and base64 signature returned for a sign request."""
    device_id: uuid.UUID
    signed_data: bytes
    signature: bytes
    counter: int


class SigningService:
    """
    Signature device service.

    Usage:
        service = SigningService(InMemoryDeviceRegistry())
        info = service.create_device("ECC", "till-1")
        result = service.sign_data(info.id, b"receipt 42")
    """

    def __init__(self, registry: Optional[DeviceRegistry] = None, rsa_key_size: int = DEFAULT_RSA_KEY_SIZE):
        self._registry = registry if registry is not None else InMemoryDeviceRegistry()
        self._rsa_key_size = rsa_key_size

    @property
    def registry(self) -> DeviceRegistry:
        return self._registry

    def create_device(self, algorithm: str, label: str = "") -> DeviceInfo:
        """
        Create a device with a fresh key pair and register it.

        Raises:
            UnsupportedAlgorithmError: If algorithm is not RSA or ECC
        """
        signer = create_signer(algorithm, rsa_key_size=self._rsa_key_size)
        device = SignatureDevice(signer, label=label)
        self._registry.set(device.id, device)
        return DeviceInfo.from_device(device)

    def sign_data(self, device_id: Union[str, uuid.UUID], raw: bytes) -> SignatureResult:
        """
        Sign raw data with the identified device, advancing its chain.

        The registry is only consulted to resolve the device; its lock is
        released before signing.

        Raises:
            DeviceNotFoundError: If no such device exists
            SignFailedError: If the signer fails
        """
        device = self._resolve(device_id)
        signed = device.sign_data(raw)
        return SignatureResult(
            device_id=device.id,
            signed_data=signed.signed_data,
            signature=signed.signature,
            counter=signed.counter,
        )

    def list_devices(self) -> List[DeviceInfo]:
        return [DeviceInfo.from_device(d) for d in self._registry.get_all()]

    def get_device(self, device_id: Union[str, uuid.UUID]) -> DeviceInfo:
        """
        Raises:
            DeviceNotFoundError: If no such device exists
        """
        return DeviceInfo.from_device(self._resolve(device_id))

    def _resolve(self, device_id: Union[str, uuid.UUID]) -> SignatureDevice:
        # Malformed ids raise ValueError for the transport to report as bad input
        key = parse_device_id(device_id)
        device = self._registry.get(key)
        if device is None:
            raise DeviceNotFoundError(key)
        return device
