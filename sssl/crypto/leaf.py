"""
sssl/crypto/leaf.py
Issue the site certificate from the CSR under the forged CA.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa

from sssl.common.utils import timestamp_ms, utc_now
from sssl.crypto.sign import sign_certificate

logger = logging.getLogger(__name__)

VALIDITY = timedelta(days=3650)

# SHA-1 on purpose: the console that has to accept this chain does not
# verify anything stronger on leaf certificates.
LEAF_DIGEST = hashes.SHA1


def issue_leaf(csr: x509.CertificateSigningRequest, forged_ca: x509.Certificate,
               ca_private_key: rsa.RSAPrivateKey,
               clock: Callable[[], datetime] = utc_now) -> x509.Certificate:
    """
    Minimal leaf: subject and key from the CSR, issuer from the forged CA,
    serial from the current time in milliseconds, ten years of validity,
    no extensions.
    """
    now = clock()
    not_before = now.replace(microsecond=0)

    builder = (
        x509.CertificateBuilder()
        .subject_name(csr.subject)
        .issuer_name(forged_ca.subject)
        .public_key(csr.public_key())
        .serial_number(timestamp_ms(now))
        .not_valid_before(not_before)
        .not_valid_after(not_before + VALIDITY)
    )

    cert = sign_certificate(builder, ca_private_key, LEAF_DIGEST(), "issue-leaf")
    logger.debug("Issued leaf %s, serial %d", cert.subject.rfc4514_string(), cert.serial_number)
    return cert
