"""
sssl/cli.py
Command line front end: collects options (flags, SSSL_* environment,
.env, or interactive prompts), validates them and runs the forger.
"""
import argparse
import logging
import sys

from sssl.common.config import (OPTIONS, Options, absolute_paths, build_forge_config,
                                resolve_options, validate_options)
from sssl.common.errors import ForgeError
from sssl.common.utils import cert_fingerprint, common_name
from sssl.forge import forge_certificate_chain
from sssl.storage.artifacts import write_artifacts


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sssl",
        description="Forge a copy of a root CA under a new key and issue a site certificate from it")
    parser.add_argument("-i", "--interactive", action="store_true",
                        help="Interactively prompt for all configuration values")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    for name, (short, _, description) in OPTIONS.items():
        parser.add_argument(f"-{short}", f"--{name.replace('_', '-')}", dest=name,
                            metavar="<value>", help=description)
    return parser


def setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )


def check_options(options: Options):
    """Absolute-path the options and report problems. Returns None if invalid."""
    options = absolute_paths(options)
    errors = validate_options(options)
    for message in errors.values():
        print(f"[!] {message}")
    return None if errors else options


def run(options: Options):
    """Forge and write the chain. Raises ForgeError (or OSError reading inputs)."""
    print(f"[*] Patching {options.nintendo_ca_g3_path}")
    config = build_forge_config(options)
    result = forge_certificate_chain(config)
    print(f"[+] Forged CA {result.forged_ca.subject.rfc4514_string()} (SHA-256 {cert_fingerprint(result.forged_ca)})")
    print(f"[+] Issued site certificate for {common_name(result.site_certificate.subject)}")
    for path in write_artifacts(result.artifacts, options.output_folder_path):
        print(f"[+] Wrote {path}")
    return result


def prompt_options() -> Options:
    values = {}
    for name, (_, default, description) in OPTIONS.items():
        shown = "" if default is None else f" [{default}]"
        values[name] = input(f"SSSL: {description}{shown}: ").strip() or None
    # Blank answers take the prompt defaults, not SSSL_* variables
    return resolve_options(values, environ={})


def interactive():
    """Prompt until a run succeeds; invalid input or a failed run prompts again."""
    while True:
        options = check_options(prompt_options())
        if options is None:
            continue
        try:
            return run(options)
        except (ForgeError, OSError) as e:
            print(f"[!] Error patching CA: {e}")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    if args.interactive:
        try:
            interactive()
        except (KeyboardInterrupt, EOFError):
            print("\n[*] Aborted.")
            return 1
        return 0

    cli_values = {name: getattr(args, name) for name in OPTIONS}
    options = check_options(resolve_options(cli_values))
    if options is None:
        print("[!] Invalid options specified.")
        return 1

    try:
        run(options)
    except (ForgeError, OSError) as e:
        print(f"[!] Error patching CA: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
