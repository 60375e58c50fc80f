from datetime import datetime, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def timestamp_ms(moment: datetime) -> int:
    """Milliseconds since the epoch for an aware datetime."""
    return int(moment.timestamp() * 1000)


def cert_fingerprint(cert: x509.Certificate) -> str:
    """SHA-256 fingerprint of a certificate as a hex string."""
    return cert.fingerprint(hashes.SHA256()).hex()


def common_name(name: x509.Name):
    """First commonName value of a Name, or None."""
    attrs = name.get_attributes_for_oid(x509.NameOID.COMMON_NAME)
    return attrs[0].value if attrs else None
