"""
sssl/crypto/ca.py
Forge a stand-in for a root CA: same subject, serial, validity and
extensions (byte for byte) as the original, but carrying (and signed by)
our own key.
"""
import logging
import os
from typing import Callable, Iterable, List

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.x509.oid import ExtensionOID

from sssl.common.errors import KeyGenerationFailure, MalformedCertificate
from sssl.crypto.keys import KeyPair
from sssl.crypto.pki import raw_extensions
from sssl.crypto.sign import sign_certificate

logger = logging.getLogger(__name__)

KEY_IDENTIFIER_LENGTH = 16

RandomBytes = Callable[[int], bytes]


def forged_authority_key_identifier(root: x509.Certificate,
                                    random_bytes: RandomBytes = os.urandom) -> x509.Extension:
    """
    A fresh authority key identifier for the forged CA.

    The key identifier is random, but issuer and serial keep pointing at the
    original root's issuer and serial number.
    """
    try:
        key_id = bytes(random_bytes(KEY_IDENTIFIER_LENGTH))
    except Exception as e:
        raise KeyGenerationFailure("forge-ca", f"random source failed: {e}") from e
    if len(key_id) != KEY_IDENTIFIER_LENGTH:
        raise KeyGenerationFailure(
            "forge-ca", f"expected {KEY_IDENTIFIER_LENGTH} random bytes, got {len(key_id)}")

    aki = x509.AuthorityKeyIdentifier(
        key_identifier=key_id,
        authority_cert_issuer=[x509.DirectoryName(root.issuer)],
        authority_cert_serial_number=root.serial_number,
    )
    return x509.Extension(ExtensionOID.AUTHORITY_KEY_IDENTIFIER, False, aki)


def rewrite_extensions(extensions: Iterable[x509.Extension],
                       authority_key_identifier: x509.Extension) -> List[x509.Extension]:
    """Every extension except the AKI, in order, followed by the replacement AKI."""
    kept = [ext for ext in extensions if ext.oid != ExtensionOID.AUTHORITY_KEY_IDENTIFIER]
    return kept + [authority_key_identifier]


def forge_ca(root: x509.Certificate, ca_keys: KeyPair,
             random_bytes: RandomBytes = os.urandom) -> x509.Certificate:
    """
    Clone `root` onto `ca_keys` and self-sign it with SHA-256.

    Issuer is the root's *subject*, so the forged CA is self-signed like the
    root it replaces. The CA key is never compared with the root's key.
    """
    aki = forged_authority_key_identifier(root, random_bytes)
    try:
        builder = (
            x509.CertificateBuilder()
            .subject_name(root.subject)
            .issuer_name(root.subject)
            .public_key(ca_keys.public_key)
            .serial_number(root.serial_number)
            .not_valid_before(root.not_valid_before_utc)
            .not_valid_after(root.not_valid_after_utc)
        )
        for ext in rewrite_extensions(raw_extensions(root), aki):
            builder = builder.add_extension(ext.value, critical=ext.critical)
    except ValueError as e:
        raise MalformedCertificate("forge-ca", f"root cannot be cloned: {e}") from e

    cert = sign_certificate(builder, ca_keys.private_key, hashes.SHA256(), "forge-ca")
    logger.debug("Forged CA %s with AKI keyid %s", cert.subject.rfc4514_string(), aki.value.key_identifier.hex())
    return cert
