"""
sssl/crypto/pki.py
Root CA decoding (DER or PEM) and a comparable view of a certificate.
"""
import logging
from datetime import datetime
from typing import List, Literal, Tuple

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from pyasn1.codec.der import decoder
from pyasn1.error import PyAsn1Error
from pyasn1_modules import rfc5280
from pydantic import BaseModel, ConfigDict

from sssl.common.errors import MalformedCertificate

logger = logging.getLogger(__name__)

CertFormat = Literal["der", "pem"]


class CertificateInfo(BaseModel):
    """Modeled fields of a certificate, comparable with ==."""
    model_config = ConfigDict(frozen=True)

    subject: str
    issuer: str
    serial_number: int
    not_valid_before: datetime
    not_valid_after: datetime
    public_modulus: int
    public_exponent: int
    # (dotted OID, critical, extnValue bytes as encoded)
    extensions: List[Tuple[str, bool, bytes]]


def load_certificate(data: bytes, fmt: CertFormat) -> x509.Certificate:
    """
    Parse a certificate from DER or PEM bytes.

    Every modeled field is decoded here, so a structurally broken certificate
    raises MalformedCertificate now instead of somewhere in the forger.
    """
    if fmt == "pem":
        loader = x509.load_pem_x509_certificate
    elif fmt == "der":
        loader = x509.load_der_x509_certificate
    else:
        raise MalformedCertificate("decode", f"unknown certificate format {fmt!r}")

    try:
        cert = loader(data)
        # cryptography parses these lazily
        _ = (cert.subject, cert.issuer, cert.serial_number,
             cert.not_valid_before_utc, cert.not_valid_after_utc)
        cert.public_key()
        _ = list(cert.extensions)
    except (ValueError, TypeError, UnsupportedAlgorithm, x509.DuplicateExtension) as e:
        raise MalformedCertificate("decode", f"not a valid {fmt.upper()} certificate: {e}") from e
    raw_extensions(cert)

    logger.debug("Decoded root %s (serial %x)", cert.subject.rfc4514_string(), cert.serial_number)
    return cert


def raw_extensions(cert: x509.Certificate) -> List[x509.Extension]:
    """
    The extensions of `cert` in encoded order, each carrying its extnValue
    exactly as it appears in the certificate, wrapped as UnrecognizedExtension
    so a builder writes the bytes back untouched.
    """
    der = cert.public_bytes(serialization.Encoding.DER)
    try:
        asn1_cert, _ = decoder.decode(der, asn1Spec=rfc5280.Certificate())
    except PyAsn1Error as e:
        raise MalformedCertificate("decode", f"extensions cannot be read: {e}") from e

    extensions = asn1_cert["tbsCertificate"]["extensions"]
    if not extensions.isValue:
        return []

    result = []
    for ext in extensions:
        oid = x509.ObjectIdentifier(str(ext["extnID"]))
        value = x509.UnrecognizedExtension(oid, ext["extnValue"].asOctets())
        result.append(x509.Extension(oid, bool(ext["critical"]), value))
    return result


def describe(cert: x509.Certificate) -> CertificateInfo:
    pub = cert.public_key()
    if not isinstance(pub, rsa.RSAPublicKey):
        raise MalformedCertificate("decode", "certificate does not carry an RSA public key")
    numbers = pub.public_numbers()
    return CertificateInfo(
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        serial_number=cert.serial_number,
        not_valid_before=cert.not_valid_before_utc,
        not_valid_after=cert.not_valid_after_utc,
        public_modulus=numbers.n,
        public_exponent=numbers.e,
        extensions=[
            (ext.oid.dotted_string, ext.critical, ext.value.value)
            for ext in raw_extensions(cert)
        ],
    )


def certificate_to_pem(cert: x509.Certificate) -> str:
    return cert.public_bytes(serialization.Encoding.PEM).decode()
