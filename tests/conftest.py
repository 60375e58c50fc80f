from datetime import datetime, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtensionOID, NameOID

from sssl.crypto.keys import KeyPair, public_key_of

ROOT_SERIAL = 0x2F3A91
UPSTREAM_SERIAL = 0x1001
PRIVATE_EXTENSION_OID = x509.ObjectIdentifier("1.3.6.1.4.1.55555.1.1")
# certificatePolicies: anyPolicy with a userNotice whose explicitText is a
# VisibleString. Re-encoding through cryptography would turn it into UTF8String.
POLICIES_DER = bytes.fromhex(
    "301c301a0604551d20003012301006082b06010505070202"
    "30041a024869"
)

ROOT_SUBJECT = x509.Name([
    x509.NameAttribute(NameOID.COUNTRY_NAME, "US"),
    x509.NameAttribute(NameOID.STATE_OR_PROVINCE_NAME, "Washington"),
    x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Nintendo"),
    x509.NameAttribute(NameOID.COMMON_NAME, "Nintendo CA - G3"),
])
# Distinct from the subject so the AKI issuer can be told apart
UPSTREAM_SUBJECT = x509.Name([
    x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Upstream Trust"),
    x509.NameAttribute(NameOID.COMMON_NAME, "Upstream Root"),
])


def rsa_key(bits):
    return rsa.generate_private_key(public_exponent=65537, key_size=bits)


def key_pem(key):
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption()
    )


@pytest.fixture(scope="session")
def root_key():
    return rsa_key(2048)


@pytest.fixture(scope="session")
def ca_key():
    return rsa_key(2048)


@pytest.fixture(scope="session")
def site_key():
    return rsa_key(1024)


@pytest.fixture(scope="session")
def unrelated_key():
    return rsa_key(2048)


@pytest.fixture(scope="session")
def ca_keys(ca_key):
    return KeyPair(private_key=ca_key, public_key=public_key_of(ca_key))


@pytest.fixture(scope="session")
def site_keys(site_key):
    return KeyPair(private_key=site_key, public_key=public_key_of(site_key))


@pytest.fixture(scope="session")
def key_generator(ca_key, site_key):
    """Stands in for RSA generation: hands out the session keys by size."""
    keys = {2048: ca_key, 1024: site_key}

    def generate(bits):
        return keys[bits]
    return generate


@pytest.fixture(scope="session")
def root_cert(root_key):
    """A root CA with the extension mix of a real one, AKI in the middle."""
    builder = (
        x509.CertificateBuilder()
        .subject_name(ROOT_SUBJECT)
        .issuer_name(UPSTREAM_SUBJECT)
        .public_key(root_key.public_key())
        .serial_number(ROOT_SERIAL)
        .not_valid_before(datetime(2010, 1, 1, tzinfo=timezone.utc))
        .not_valid_after(datetime(2037, 12, 31, 23, 59, 59, tzinfo=timezone.utc))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.AuthorityKeyIdentifier(
                key_identifier=b"\x01" * 20,
                authority_cert_issuer=[x509.DirectoryName(UPSTREAM_SUBJECT)],
                authority_cert_serial_number=UPSTREAM_SERIAL,
            ),
            critical=False,
        )
        .add_extension(
            x509.KeyUsage(
                digital_signature=False, content_commitment=False, key_encipherment=False,
                data_encipherment=False, key_agreement=False, key_cert_sign=True,
                crl_sign=True, encipher_only=False, decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(root_key.public_key()), critical=False)
        .add_extension(x509.UnrecognizedExtension(ExtensionOID.CERTIFICATE_POLICIES, POLICIES_DER),
                       critical=False)
        .add_extension(x509.UnrecognizedExtension(PRIVATE_EXTENSION_OID, b"\x05\x00"), critical=False)
    )
    return builder.sign(root_key, hashes.SHA256())


@pytest.fixture(scope="session")
def root_der(root_cert):
    return root_cert.public_bytes(serialization.Encoding.DER)


@pytest.fixture(scope="session")
def root_pem(root_cert):
    return root_cert.public_bytes(serialization.Encoding.PEM)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """No stray SSSL_* variables or .env files leak into a test."""
    for name in ("NINTENDO_CA_G3_PATH", "NINTENDO_CA_G3_FORMAT", "CA_PRIVATE_KEY_PATH",
                 "SITE_PRIVATE_KEY_PATH", "CSR_PATH", "COMMON_NAME", "OUTPUT_FOLDER_PATH"):
        monkeypatch.delenv(f"SSSL_{name}", raising=False)
    monkeypatch.chdir(tmp_path)
