"""
sssl/common/config.py
Option resolution (command line > SSSL_* environment / .env > default),
validation, and the immutable config handed to the forger.
"""
import os
from pathlib import Path
from typing import Dict, Literal, Mapping, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "SSSL_"

# option -> (short flag, default, description)
OPTIONS = {
    "nintendo_ca_g3_path": (
        "g3", "./CACERT_NINTENDO_CA_G3.der",
        "Path to Nintendo CA - G3 certificate (may be in DER or PEM format, default to this directory)"),
    "nintendo_ca_g3_format": (
        "f", "der",
        'Nintendo CA - G3 certificate format (must be "der" or "pem")'),
    "ca_private_key_path": (
        "cap", None,
        "Path to private key for forged CA (will generate if not set)"),
    "site_private_key_path": (
        "sp", None,
        "Path to private key for site certificate (will generate if not set)"),
    "csr_path": (
        "csrp", None,
        "Path to CSR (will generate if not set)"),
    "common_name": (
        "cn", "*",
        'CN for site certificate (default to "*")'),
    "output_folder_path": (
        "o", "./",
        "Output folder (default to this directory)"),
}


class Options(BaseModel):
    model_config = ConfigDict(frozen=True)

    nintendo_ca_g3_path: str
    nintendo_ca_g3_format: str
    ca_private_key_path: Optional[str] = None
    site_private_key_path: Optional[str] = None
    csr_path: Optional[str] = None
    common_name: str
    output_folder_path: str


class ForgeConfig(BaseModel):
    """Everything one forging run needs, already read from disk."""
    model_config = ConfigDict(frozen=True)

    root_ca: bytes
    root_ca_format: Literal["der", "pem"] = "der"
    ca_private_key: Optional[bytes] = None
    site_private_key: Optional[bytes] = None
    csr: Optional[bytes] = None
    common_name: str = Field(default="*", min_length=1)


def resolve_options(cli_values: Mapping[str, Optional[str]],
                    environ: Optional[Mapping[str, str]] = None) -> Options:
    """
    Merge command line values, SSSL_<OPTION> environment variables and
    defaults, in that order. Empty strings count as unset.
    """
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ

    values = {}
    for name, (_, default, _) in OPTIONS.items():
        values[name] = cli_values.get(name) or environ.get(ENV_PREFIX + name.upper()) or default
    return Options(**values)


def validate_options(options: Options) -> Dict[str, str]:
    """
    Check option values. Returns option name -> error message;
    an empty dict means the options are usable.
    """
    errors = {}

    if not Path(options.nintendo_ca_g3_path).is_file():
        errors["nintendo_ca_g3_path"] = "Invalid Nintendo CA - G3 path"
    if options.nintendo_ca_g3_format not in ("der", "pem"):
        errors["nintendo_ca_g3_format"] = 'Invalid Nintendo CA - G3 format: must be "der" or "pem"'
    if options.ca_private_key_path and not Path(options.ca_private_key_path).is_file():
        errors["ca_private_key_path"] = "Invalid CA private key path"
    if options.site_private_key_path and not Path(options.site_private_key_path).is_file():
        errors["site_private_key_path"] = "Invalid site certificate private key path"
    if options.csr_path and not Path(options.csr_path).is_file():
        errors["csr_path"] = "Invalid CSR path"
    if not Path(options.output_folder_path).is_dir():
        errors["output_folder_path"] = "Invalid output folder path"

    return errors


def absolute_paths(options: Options) -> Options:
    """Copy of `options` with every path option made absolute."""
    updates = {}
    for name in ("nintendo_ca_g3_path", "ca_private_key_path", "site_private_key_path",
                 "csr_path", "output_folder_path"):
        value = getattr(options, name)
        if value:
            updates[name] = str(Path(value).resolve())
    return options.model_copy(update=updates)


def _read_optional(path: Optional[str]) -> Optional[bytes]:
    if not path:
        return None
    with open(path, "rb") as f:
        return f.read()


def build_forge_config(options: Options) -> ForgeConfig:
    """Read the input files named by validated options."""
    with open(options.nintendo_ca_g3_path, "rb") as f:
        root_ca = f.read()

    return ForgeConfig(
        root_ca=root_ca,
        root_ca_format=options.nintendo_ca_g3_format,
        ca_private_key=_read_optional(options.ca_private_key_path),
        site_private_key=_read_optional(options.site_private_key_path),
        csr=_read_optional(options.csr_path),
        common_name=options.common_name,
    )
