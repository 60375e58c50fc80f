"""
sssl/crypto/csr.py
Certificate signing request for the site certificate.
"""
import logging
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.x509.name import _ASN1Type
from cryptography.x509.oid import NameOID

from sssl.common.errors import InvalidCSR
from sssl.crypto.keys import KeyPair
from sssl.crypto.sign import sign_request

logger = logging.getLogger(__name__)

# Same digest the leaf is signed with
CSR_DIGEST = hashes.SHA1

# PKCS#9 extensionRequest, carried through the builder's own extensions
EXTENSION_REQUEST = x509.ObjectIdentifier("1.2.840.113549.1.9.14")


def load_csr(pem: bytes) -> x509.CertificateSigningRequest:
    try:
        csr = x509.load_pem_x509_csr(pem)
        _ = list(csr.extensions)
        _ = list(csr.attributes)
    except (ValueError, TypeError, x509.DuplicateExtension) as e:
        raise InvalidCSR("csr", f"could not parse CSR PEM: {e}") from e
    return csr


def obtain_csr(common_name: str, site_keys: KeyPair,
               csr_pem: Optional[bytes] = None) -> x509.CertificateSigningRequest:
    """
    Build the site CSR: subject CN=`common_name`, the site public key,
    self-signed with the site private key.

    A supplied CSR only serves as a template: its requested extensions and
    other attributes (challengePassword and the like) are kept, its subject
    and public key are replaced.
    """
    builder = x509.CertificateSigningRequestBuilder()

    if csr_pem is not None:
        template = load_csr(csr_pem)
        logger.debug("Using CSR template %s", template.subject.rfc4514_string())
        for ext in template.extensions:
            builder = builder.add_extension(ext.value, critical=ext.critical)
        for attribute in template.attributes:
            if attribute.oid == EXTENSION_REQUEST:
                continue
            try:
                tag = _ASN1Type(attribute._type)
            except ValueError:
                logger.warning("Dropping CSR attribute %s: value type %d cannot be re-encoded",
                               attribute.oid.dotted_string, attribute._type)
                continue
            builder = builder.add_attribute(attribute.oid, attribute.value, _tag=tag)

    try:
        builder = builder.subject_name(x509.Name([
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]))
    except ValueError as e:
        raise InvalidCSR("csr", f"invalid common name {common_name!r}: {e}") from e

    # The builder takes the public key from the signing key
    return sign_request(builder, site_keys.private_key, CSR_DIGEST(), "csr")
