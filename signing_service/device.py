"""
Signature device aggregate.

A device binds one signer to a monotonically increasing counter and the
last signature it produced. Every signature embeds the counter and the
previous signature, forming a chain a verifier can replay:

    signed_data = "<counter>_<raw data>_<base64(last signature)>"

The chain is seeded with base64 of the 16 raw bytes of the device UUID.
"""

import threading
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

from .signers import PublicKey, Signer
from .util import b64e_bytes, new_device_id

SEPARATOR = b"_"


@dataclass(frozen=True)
class SignedData:
    """Result of one successful device signature."""
    signed_data: bytes
    signature: bytes
    counter: int


def prepare_data(counter: int, raw: bytes, last_sig: bytes) -> bytes:
    """
    Build the canonical data to be signed.

    The raw bytes are embedded verbatim; an underscore inside them is not
    escaped.
    """
    return SEPARATOR.join([str(counter).encode("ascii"), raw, b64e_bytes(last_sig)])


def seed_signature(device_id: uuid.UUID) -> bytes:
    """Initial last-signature value of a device: base64 of its raw UUID bytes."""
    return b64e_bytes(device_id.bytes)


class SignatureDevice:
    """
    A signing-capable device: identity, label, counter, last signature
    and its bound signer.

    id, label and signer are immutable. counter and last signature are
    only changed by sign_data, under the device's own lock.
    """

    def __init__(self, signer: Signer, label: str = "", device_id: Optional[uuid.UUID] = None):
        self._id = device_id or new_device_id()
        self._label = label or str(self._id)
        self._signer = signer
        self._counter = 0
        self._last_signature = seed_signature(self._id)
        self._lock = threading.Lock()

    @property
    def id(self) -> uuid.UUID:
        return self._id

    @property
    def label(self) -> str:
        return self._label

    @property
    def signer(self) -> Signer:
        return self._signer

    @property
    def algorithm(self) -> str:
        return self._signer.algorithm

    @property
    def public_key(self) -> PublicKey:
        return self._signer.public_key()

    @property
    def counter(self) -> int:
        with self._lock:
            return self._counter

    @property
    def last_signature(self) -> bytes:
        with self._lock:
            return self._last_signature

    def snapshot(self) -> Tuple[int, bytes]:
        """Read (counter, last signature) as one consistent pair."""
        with self._lock:
            return self._counter, self._last_signature

    def sign_data(self, raw: bytes) -> SignedData:
        """
        Sign raw data and advance the chain.

        The canonical data is built from the current counter and last
        signature, signed, and then the counter and last signature are
        advanced together. The whole sequence holds the device lock, so
        concurrent callers observe a strict total order.

        Raises:
            SignFailedError: If the signer fails; the chain is not advanced
        """
        with self._lock:
            counter = self._counter
            data = prepare_data(counter, raw, self._last_signature)
            signature = self._signer.sign(data)
            self._last_signature = signature
            self._counter = counter + 1
        return SignedData(signed_data=data, signature=signature, counter=counter)

    def __repr__(self) -> str:
        return f"SignatureDevice(id={self._id}, label={self._label!r}, algorithm={self.algorithm})"
