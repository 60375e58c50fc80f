"""Forge a stand-in for a trusted root CA and issue a site certificate under it."""
from sssl.common.config import ForgeConfig
from sssl.common.errors import (ForgeError, InvalidCSR, InvalidPrivateKey, KeyGenerationFailure,
                                MalformedCertificate, SigningFailure, WriteFailure)
from sssl.forge import ForgeResult, forge_certificate_chain

__version__ = "1.0.0"
