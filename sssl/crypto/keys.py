"""
sssl/crypto/keys.py
RSA key pairs for the forged CA and the site certificate.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from sssl.common.errors import InvalidPrivateKey, KeyGenerationFailure

logger = logging.getLogger(__name__)

PUBLIC_EXPONENT = 65537


class KeyRole(enum.Enum):
    CA = ("ca-key", 2048)
    SITE = ("site-key", 1024)

    def __init__(self, stage, bits):
        self.stage = stage
        self.bits = bits


@dataclass(frozen=True)
class KeyPair:
    private_key: rsa.RSAPrivateKey
    public_key: rsa.RSAPublicKey

    def private_pem(self) -> str:
        # PKCS#1 "RSA PRIVATE KEY"
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption()
        ).decode()


KeyGenerator = Callable[[int], rsa.RSAPrivateKey]


def generate_rsa_key(bits: int) -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=bits)


def public_key_of(private_key: rsa.RSAPrivateKey) -> rsa.RSAPublicKey:
    """Recompute the public key from the private key's (n, e)."""
    numbers = private_key.private_numbers().public_numbers
    return rsa.RSAPublicNumbers(numbers.e, numbers.n).public_key()


def load_private_key(pem: bytes, role: KeyRole) -> KeyPair:
    """Load an unencrypted PEM private key; it must be RSA."""
    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidPrivateKey(role.stage, f"could not parse private key PEM: {e}") from e

    if not isinstance(key, rsa.RSAPrivateKey):
        raise InvalidPrivateKey(role.stage, f"expected an RSA private key, got {type(key).__name__}")

    logger.debug("Loaded %d-bit RSA key for %s", key.key_size, role.name)
    return KeyPair(private_key=key, public_key=public_key_of(key))


def obtain_key_pair(role: KeyRole, private_key_pem: Optional[bytes] = None,
                    generate: KeyGenerator = generate_rsa_key) -> KeyPair:
    """
    Key material for one role.

    With PEM bytes the supplied key is used; otherwise a fresh key of the
    role's size is generated. Generation is not retried.
    """
    if private_key_pem is not None:
        return load_private_key(private_key_pem, role)

    logger.debug("Generating %d-bit RSA key for %s", role.bits, role.name)
    try:
        key = generate(role.bits)
    except Exception as e:
        raise KeyGenerationFailure(role.stage, f"RSA key generation failed: {e}") from e

    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyGenerationFailure(role.stage, "key generator did not return an RSA private key")
    return KeyPair(private_key=key, public_key=public_key_of(key))
