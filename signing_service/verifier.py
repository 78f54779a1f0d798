#!/usr/bin/env python3
"""
Offline signature chain verifier.

Replays the ordered signature history of one device using only its
public key and identity. Detects reordering, replay and omission: each
record must carry the next counter value and embed the previous
signature.

Usage:
    signing-service-verify <history.json>

history.json:
    {
      "device_id": "<uuid>",
      "public_key": "<PEM>",
      "records": [{"signed_data": "...", "signature": "..."}, ...]
    }

Output:
    VALID: <n> signatures verified
    INVALID: <reason>
"""

import argparse
import json
import sys
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .device import SEPARATOR, seed_signature
from .signers import PublicKey, load_public_key_pem, verify_signature
from .util import b64e_bytes, parse_device_id


def _as_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, bytes):
        return value
    raise TypeError(f"expected text, got {type(value).__name__}")


@dataclass(frozen=True)
class ChainRecord:
    """One signed entry of a device history."""
    signed_data: bytes
    signature: bytes

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'ChainRecord':
        return cls(signed_data=_as_bytes(d["signed_data"]), signature=_as_bytes(d["signature"]))


@dataclass(frozen=True)
class ChainVerificationResult:
    """Outcome of verifying a history; index is the first failing record."""
    valid: bool
    reason: str = "Valid"
    index: Optional[int] = None

    @classmethod
    def ok(cls, count: int) -> 'ChainVerificationResult':
        return cls(valid=True, reason=f"{count} signatures verified")

    @classmethod
    def failed(cls, index: int, reason: str) -> 'ChainVerificationResult':
        return cls(valid=False, reason=f"record {index}: {reason}", index=index)


def split_signed_data(signed_data: bytes) -> Optional[Tuple[bytes, bytes, bytes]]:
    """
    Split canonical data into (counter, raw, previous-signature base64).

    The counter ends at the first separator and the base64 suffix starts
    after the last one; base64 never contains an underscore, so raw data
    may contain any bytes.
    """
    head, sep, rest = signed_data.partition(SEPARATOR)
    if not sep:
        return None
    raw, sep, tail = rest.rpartition(SEPARATOR)
    if not sep:
        return None
    return head, raw, tail


def verify_chain(
    device_id: Union[str, uuid.UUID],
    public_key: PublicKey,
    records: Iterable[Union[ChainRecord, Dict[str, Any]]],
) -> ChainVerificationResult:
    """
    Verify an ordered device history.

    Args:
        device_id: Identity of the device that produced the history
        public_key: The device's public key
        records: Records in signing order, starting with the first signature

    Returns:
        ChainVerificationResult describing the first failure, if any
    """
    previous = seed_signature(parse_device_id(device_id))
    count = 0

    for index, record in enumerate(records):
        if not isinstance(record, ChainRecord):
            record = ChainRecord.from_dict(record)

        parts = split_signed_data(record.signed_data)
        if parts is None:
            return ChainVerificationResult.failed(index, "malformed signed data")
        counter, _raw, prev_b64 = parts

        if counter != str(index).encode("ascii"):
            return ChainVerificationResult.failed(index, f"counter {counter.decode('ascii', 'replace')!r} out of sequence")

        if prev_b64 != b64e_bytes(previous):
            return ChainVerificationResult.failed(index, "previous signature mismatch")

        if not verify_signature(public_key, record.signed_data, record.signature):
            return ChainVerificationResult.failed(index, "invalid signature")

        previous = record.signature
        count += 1

    return ChainVerificationResult.ok(count)


def load_history(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Verify a signature device history offline")
    parser.add_argument("history", help="JSON file with device_id, public_key and records")
    args = parser.parse_args(argv)

    try:
        history = load_history(args.history)
        public_key = load_public_key_pem(history["public_key"])
        result = verify_chain(history["device_id"], public_key, history.get("records", []))
    except (OSError, KeyError, ValueError, TypeError) as e:
        print(f"INVALID: {e}")
        return 1

    if result.valid:
        print(f"VALID: {result.reason}")
        return 0
    print(f"INVALID: {result.reason}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
