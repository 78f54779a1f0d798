"""
Signer back-ends for signature devices.

Provides the RSA and ECDSA signers bound to a signature device, the
factory that maps an algorithm tag to a freshly keyed signer, and public
key helpers for verification and serialization.

Both back-ends hash with SHA-256 and return the signature as standard,
padded base64 bytes. ECDSA signatures are the concatenation r || s with
each integer left-padded to the curve's byte width.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from .errors import SignFailedError, UnsupportedAlgorithmError
from .util import b64e_bytes, try_b64d

PublicKey = Union[rsa.RSAPublicKey, ec.EllipticCurvePublicKey]

DEFAULT_RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537
ECC_CURVE = ec.SECP256R1

SUPPORTED_ALGORITHMS = ("RSA", "ECC")


class Signer(ABC):
    """
    Abstract interface for a device signer.

    A signer owns exactly one key pair, generated at construction. The
    private key is never exposed.
    """

    algorithm: str = ""

    @abstractmethod
    def sign(self, data: bytes) -> bytes:
        """
        Sign data and return the base64-encoded signature.

        Args:
            data: The exact bytes to hash and sign

        Returns:
            Standard-alphabet, padded base64 of the raw signature

        Raises:
            SignFailedError: If the algorithm fails
        """
        pass

    @abstractmethod
    def public_key(self) -> PublicKey:
        """Get the public half of the key pair."""
        pass

    def verify(self, data: bytes, signature_b64: Union[bytes, str]) -> bool:
        """
        Verify a base64-encoded signature over data.

        Returns False (never raises) on a malformed or wrong signature.
        """
        return verify_signature(self.public_key(), data, signature_b64)


class RSASigner(Signer):
    """RSA PKCS#1 v1.5 signer over SHA-256."""

    algorithm = "RSA"

    def __init__(self, key_size: int = DEFAULT_RSA_KEY_SIZE):
        self._private_key = rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT,
            key_size=key_size,
        )
        self._public_key = self._private_key.public_key()

    def sign(self, data: bytes) -> bytes:
        try:
            raw = self._private_key.sign(data, padding.PKCS1v15(), hashes.SHA256())
        except Exception as exc:
            raise SignFailedError("failed to sign data", exc) from exc
        return b64e_bytes(raw)

    def public_key(self) -> rsa.RSAPublicKey:
        return self._public_key

    @property
    def key_size(self) -> int:
        return self._private_key.key_size


class ECCSigner(Signer):
    """
    ECDSA signer over NIST P-256 with SHA-256.

    The raw signature is r || s, each padded to 32 bytes big-endian, so the
    midpoint split on verification is always exact.
    """

    algorithm = "ECC"

    def __init__(self):
        self._private_key = ec.generate_private_key(ECC_CURVE())
        self._public_key = self._private_key.public_key()

    def sign(self, data: bytes) -> bytes:
        try:
            der = self._private_key.sign(data, ec.ECDSA(hashes.SHA256()))
        except Exception as exc:
            raise SignFailedError("failed to sign data", exc) from exc
        r, s = decode_dss_signature(der)
        width = curve_byte_width(self._public_key.curve)
        return b64e_bytes(r.to_bytes(width, "big") + s.to_bytes(width, "big"))

    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self._public_key


def curve_byte_width(curve: ec.EllipticCurve) -> int:
    """Byte width of a scalar on the given curve (32 for P-256)."""
    return (curve.key_size + 7) // 8


def split_ecdsa_signature(raw: bytes) -> Optional[Tuple[int, int]]:
    """
    Split a raw r || s signature at its midpoint into integers.

    Returns None for an empty or odd-length input.
    """
    if not raw or len(raw) % 2:
        return None
    half = len(raw) // 2
    return int.from_bytes(raw[:half], "big"), int.from_bytes(raw[half:], "big")


def verify_signature(public_key: PublicKey, data: bytes, signature_b64: Union[bytes, str]) -> bool:
    """
    Verify a base64-encoded device signature using only the public key.

    Args:
        public_key: RSA or EC public key of the device
        data: The canonical data that was signed
        signature_b64: Base64 signature as returned by Signer.sign

    Returns:
        True if the signature is valid, False otherwise (including when the
        base64 cannot be decoded)
    """
    raw = try_b64d(signature_b64)
    if raw is None:
        return False

    if isinstance(public_key, rsa.RSAPublicKey):
        try:
            public_key.verify(raw, data, padding.PKCS1v15(), hashes.SHA256())
            return True
        except InvalidSignature:
            return False

    if isinstance(public_key, ec.EllipticCurvePublicKey):
        parts = split_ecdsa_signature(raw)
        if parts is None:
            return False
        r, s = parts
        try:
            public_key.verify(encode_dss_signature(r, s), data, ec.ECDSA(hashes.SHA256()))
            return True
        except (InvalidSignature, ValueError):
            return False

    raise TypeError(f"unsupported public key type: {type(public_key).__name__}")


def public_key_pem(public_key: PublicKey) -> str:
    """Serialize a public key as SubjectPublicKeyInfo PEM text."""
    return public_key.public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


def load_public_key_pem(pem: Union[str, bytes]) -> PublicKey:
    """
    Load a PEM public key produced by public_key_pem.

    Raises:
        ValueError: If the PEM is malformed
        TypeError: If the key is neither RSA nor EC
    """
    if isinstance(pem, str):
        pem = pem.encode("ascii")
    key = serialization.load_pem_public_key(pem)
    if not isinstance(key, (rsa.RSAPublicKey, ec.EllipticCurvePublicKey)):
        raise TypeError(f"unsupported public key type: {type(key).__name__}")
    return key


def create_signer(algorithm: str, rsa_key_size: Optional[int] = None) -> Signer:
    """
    Factory function to create a freshly keyed signer.

    Args:
        algorithm: "RSA" or "ECC", case-insensitive
        rsa_key_size: RSA modulus size in bits (RSA only)

    Returns:
        A new Signer with its own key pair; never cached

    Raises:
        UnsupportedAlgorithmError: For any other tag
    """
    tag = (algorithm or "").upper()
    if tag not in SUPPORTED_ALGORITHMS:
        raise UnsupportedAlgorithmError(algorithm)
    if tag == "RSA":
        return RSASigner(key_size=rsa_key_size or DEFAULT_RSA_KEY_SIZE)
    return ECCSigner()
