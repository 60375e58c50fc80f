"""
sssl/storage/artifacts.py
Serialize the forged chain to PEM and write it out.
"""
import logging
from pathlib import Path
from typing import List, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from pydantic import BaseModel, ConfigDict

from sssl.common.errors import WriteFailure
from sssl.crypto.keys import KeyPair
from sssl.crypto.pki import certificate_to_pem

logger = logging.getLogger(__name__)


class ChainArtifacts(BaseModel):
    model_config = ConfigDict(frozen=True)

    forged_ca: str
    forged_ca_private_key: str
    site_certificate: str
    site_private_key: str
    csr: str
    chain: str


# Write order, file name, label
OUTPUT_FILES = [
    ("forged_ca", "forged-ca.pem", "forged CA"),
    ("forged_ca_private_key", "forged-ca-private-key.pem", "forged CA private key"),
    ("site_certificate", "ssl-cert.pem", "SSL certificate"),
    ("site_private_key", "ssl-cert-private-key.pem", "SSL certificate private key"),
    ("csr", "csr.csr", "CSR"),
    ("chain", "cert-chain.pem", "certificate chain"),
]


def assemble(forged_ca: x509.Certificate, ca_keys: KeyPair,
             site_certificate: x509.Certificate, site_keys: KeyPair,
             csr: x509.CertificateSigningRequest) -> ChainArtifacts:
    ca_pem = certificate_to_pem(forged_ca)
    site_pem = certificate_to_pem(site_certificate)
    return ChainArtifacts(
        forged_ca=ca_pem,
        forged_ca_private_key=ca_keys.private_pem(),
        site_certificate=site_pem,
        site_private_key=site_keys.private_pem(),
        csr=csr.public_bytes(serialization.Encoding.PEM).decode(),
        # leaf first, then its issuer
        chain=f"{site_pem}\n{ca_pem}\n",
    )


def write_artifacts(artifacts: ChainArtifacts, output_dir: Union[str, Path]) -> List[Path]:
    """
    Write each artifact to its fixed file name in `output_dir`.

    Writes are independent: on failure, files already written stay in place.
    """
    output_dir = Path(output_dir)
    written = []
    for field, filename, label in OUTPUT_FILES:
        path = output_dir / filename
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(getattr(artifacts, field))
        except OSError as e:
            raise WriteFailure("write", f"could not write {label} to {path}: {e}") from e
        logger.info("Wrote %s to %s", label, path)
        written.append(path)
    return written
