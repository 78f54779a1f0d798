"""
Signature Device Service

Issues per-device asymmetric key pairs (RSA or ECDSA P-256, both over
SHA-256) and produces a tamper-evident chain of signatures per device.

Every signature covers:
    <counter>_<data>_<base64(previous signature)>

so a verifier holding the public key and the ordered history can detect
reordering, replay or omission.

Usage:
    from signing_service import SigningService, InMemoryDeviceRegistry

    service = SigningService(InMemoryDeviceRegistry())
    device = service.create_device("rsa", label="till-1")
    result = service.sign_data(device.id, b"Hello World!")
    assert result.signed_data.startswith(b"0_Hello World!_")
"""

__version__ = "0.1.0"

from .errors import (
    SigningServiceError,
    UnsupportedAlgorithmError,
    DeviceNotFoundError,
    SignFailedError,
    ConfigurationError,
)

from .signers import (
    Signer,
    RSASigner,
    ECCSigner,
    SUPPORTED_ALGORITHMS,
    create_signer,
    verify_signature,
    public_key_pem,
    load_public_key_pem,
)

from .device import (
    SignatureDevice,
    SignedData,
    prepare_data,
    seed_signature,
)

from .registry import (
    DeviceRegistry,
    InMemoryDeviceRegistry,
    ReadWriteLock,
)

from .service import (
    SigningService,
    DeviceInfo,
    SignatureResult,
)

from .verifier import (
    ChainRecord,
    ChainVerificationResult,
    verify_chain,
)


__all__ = [
    "__version__",

    # Errors
    "SigningServiceError",
    "UnsupportedAlgorithmError",
    "DeviceNotFoundError",
    "SignFailedError",
    "ConfigurationError",

    # Signers
    "Signer",
    "RSASigner",
    "ECCSigner",
    "SUPPORTED_ALGORITHMS",
    "create_signer",
    "verify_signature",
    "public_key_pem",
    "load_public_key_pem",

    # Device
    "SignatureDevice",
    "SignedData",
    "prepare_data",
    "seed_signature",

    # Registry
    "DeviceRegistry",
    "InMemoryDeviceRegistry",
    "ReadWriteLock",

    # Service
    "SigningService",
    "DeviceInfo",
    "SignatureResult",

    # Verifier
    "ChainRecord",
    "ChainVerificationResult",
    "verify_chain",
]
