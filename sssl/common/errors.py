"""
sssl/common/errors.py
Error taxonomy for a forging run. Every error aborts the run.
"""


class ForgeError(Exception):
    """Base class: carries the pipeline stage that failed."""

    def __init__(self, stage: str, message: str):
        super().__init__(f"[{stage}] {message}")
        self.stage = stage
        self.message = message


class MalformedCertificate(ForgeError):
    pass


class InvalidPrivateKey(ForgeError):
    pass


class InvalidCSR(ForgeError):
    pass


class KeyGenerationFailure(ForgeError):
    pass


class SigningFailure(ForgeError):
    pass


class WriteFailure(ForgeError):
    pass
