from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.x509.oid import SignatureAlgorithmOID
from pyasn1.codec.der import decoder, encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import univ
from pyasn1_modules import rfc2986, rfc5280

from sssl.common.errors import SigningFailure

# Digests the X.509 builders refuse to sign with. The structure is built
# with SHA-256 and the to-be-signed bytes are re-signed here instead.
LEGACY_SIGNATURE_OIDS = {
    "sha1": SignatureAlgorithmOID.RSA_WITH_SHA1,
}


def _verifies(public_key: rsa.RSAPublicKey, signature: bytes, data: bytes, algorithm) -> bool:
    try:
        public_key.verify(signature, data, padding.PKCS1v15(), algorithm)
        return True
    except InvalidSignature:
        return False


def verify_signature(cert: x509.Certificate, public_key: rsa.RSAPublicKey) -> bool:
    """Verify a certificate's PKCS#1 v1.5 signature with the given issuer key."""
    return _verifies(public_key, cert.signature, cert.tbs_certificate_bytes,
                     cert.signature_hash_algorithm)


def _require_rsa(private_key, stage: str):
    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise SigningFailure(stage, f"signing key must be RSA, got {type(private_key).__name__}")


def _resign_certificate(cert: x509.Certificate, private_key: rsa.RSAPrivateKey,
                        algorithm) -> x509.Certificate:
    """Swap the signature algorithm of `cert` and sign its TBS bytes again."""
    oid = LEGACY_SIGNATURE_OIDS[algorithm.name].dotted_string
    asn1_cert, _ = decoder.decode(cert.public_bytes(serialization.Encoding.DER),
                                  asn1Spec=rfc5280.Certificate())

    # RSA parameters stay NULL, only the OID changes
    asn1_cert["tbsCertificate"]["signature"]["algorithm"] = oid
    asn1_cert["signatureAlgorithm"]["algorithm"] = oid
    tbs = encoder.encode(asn1_cert["tbsCertificate"])
    signature = private_key.sign(tbs, padding.PKCS1v15(), algorithm)
    asn1_cert["signature"] = univ.BitString.fromOctetString(signature)
    return x509.load_der_x509_certificate(encoder.encode(asn1_cert))


def _resign_request(csr: x509.CertificateSigningRequest, private_key: rsa.RSAPrivateKey,
                    algorithm) -> x509.CertificateSigningRequest:
    oid = LEGACY_SIGNATURE_OIDS[algorithm.name].dotted_string
    asn1_csr, _ = decoder.decode(csr.public_bytes(serialization.Encoding.DER),
                                 asn1Spec=rfc2986.CertificationRequest())

    info = encoder.encode(asn1_csr["certificationRequestInfo"])
    signature = private_key.sign(info, padding.PKCS1v15(), algorithm)
    asn1_csr["signatureAlgorithm"]["algorithm"] = oid
    asn1_csr["signature"] = univ.BitString.fromOctetString(signature)
    return x509.load_der_x509_csr(encoder.encode(asn1_csr))


def sign_certificate(builder: x509.CertificateBuilder, private_key: rsa.RSAPrivateKey,
                     algorithm, stage: str) -> x509.Certificate:
    """
    Sign a certificate and check the result against the signer's public key.
    """
    _require_rsa(private_key, stage)
    try:
        if algorithm.name in LEGACY_SIGNATURE_OIDS:
            cert = builder.sign(private_key=private_key, algorithm=hashes.SHA256())
            cert = _resign_certificate(cert, private_key, algorithm)
        else:
            cert = builder.sign(private_key=private_key, algorithm=algorithm)
    except (ValueError, TypeError, UnsupportedAlgorithm, PyAsn1Error) as e:
        raise SigningFailure(stage, f"{algorithm.name} signing failed: {e}") from e

    if not verify_signature(cert, private_key.public_key()):
        raise SigningFailure(stage, "fresh signature does not verify under the signing key")
    return cert


def sign_request(builder: x509.CertificateSigningRequestBuilder, private_key: rsa.RSAPrivateKey,
                 algorithm, stage: str) -> x509.CertificateSigningRequest:
    _require_rsa(private_key, stage)
    try:
        if algorithm.name in LEGACY_SIGNATURE_OIDS:
            csr = builder.sign(private_key=private_key, algorithm=hashes.SHA256())
            csr = _resign_request(csr, private_key, algorithm)
        else:
            csr = builder.sign(private_key=private_key, algorithm=algorithm)
    except (ValueError, TypeError, UnsupportedAlgorithm, PyAsn1Error) as e:
        raise SigningFailure(stage, f"{algorithm.name} signing failed: {e}") from e

    if not _verifies(csr.public_key(), csr.signature, csr.tbs_certrequest_bytes,
                     csr.signature_hash_algorithm):
        raise SigningFailure(stage, "CSR self-signature does not verify")
    return csr
