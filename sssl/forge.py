"""
sssl/forge.py
The forging pipeline: decode root -> key pairs -> forged CA -> CSR -> leaf
-> PEM artifacts. Any stage failure aborts the run with a ForgeError.
"""
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from cryptography import x509

from sssl.common.config import ForgeConfig
from sssl.common.utils import utc_now
from sssl.crypto.ca import RandomBytes, forge_ca
from sssl.crypto.csr import obtain_csr
from sssl.crypto.keys import KeyGenerator, KeyPair, KeyRole, generate_rsa_key, obtain_key_pair
from sssl.crypto.leaf import issue_leaf
from sssl.crypto.pki import load_certificate
from sssl.storage.artifacts import ChainArtifacts, assemble

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForgeResult:
    root: x509.Certificate
    forged_ca: x509.Certificate
    ca_keys: KeyPair
    site_keys: KeyPair
    csr: x509.CertificateSigningRequest
    site_certificate: x509.Certificate
    artifacts: ChainArtifacts


def forge_certificate_chain(config: ForgeConfig,
                            random_bytes: RandomBytes = os.urandom,
                            generate_key: KeyGenerator = generate_rsa_key,
                            clock: Callable[[], datetime] = utc_now) -> ForgeResult:
    root = load_certificate(config.root_ca, config.root_ca_format)
    logger.info("Forging CA from %s", root.subject.rfc4514_string())

    # Independent of each other; joined at the leaf
    ca_keys = obtain_key_pair(KeyRole.CA, config.ca_private_key, generate_key)
    site_keys = obtain_key_pair(KeyRole.SITE, config.site_private_key, generate_key)

    forged_ca = forge_ca(root, ca_keys, random_bytes)
    csr = obtain_csr(config.common_name, site_keys, config.csr)
    site_certificate = issue_leaf(csr, forged_ca, ca_keys.private_key, clock)

    artifacts = assemble(forged_ca, ca_keys, site_certificate, site_keys, csr)
    return ForgeResult(
        root=root,
        forged_ca=forged_ca,
        ca_keys=ca_keys,
        site_keys=site_keys,
        csr=csr,
        site_certificate=site_certificate,
        artifacts=artifacts,
    )
