import pytest

from sssl.common.errors import MalformedCertificate
from sssl.crypto.pki import describe, load_certificate, raw_extensions

from conftest import POLICIES_DER, ROOT_SERIAL


def test_der_and_pem_decode_to_same_fields(root_der, root_pem):
    from_der = load_certificate(root_der, "der")
    from_pem = load_certificate(root_pem, "pem")

    assert describe(from_der) == describe(from_pem)
    assert from_der.serial_number == ROOT_SERIAL


def test_describe_keeps_extension_order(root_der):
    info = describe(load_certificate(root_der, "der"))

    assert [oid for oid, _, _ in info.extensions] == [
        "2.5.29.19",  # basicConstraints
        "2.5.29.35",  # authorityKeyIdentifier
        "2.5.29.15",  # keyUsage
        "2.5.29.14",  # subjectKeyIdentifier
        "2.5.29.32",  # certificatePolicies
        "1.3.6.1.4.1.55555.1.1",
    ]
    assert info.extensions[-1] == ("1.3.6.1.4.1.55555.1.1", False, b"\x05\x00")


@pytest.mark.parametrize("data, fmt", [
    (b"definitely not a certificate", "der"),
    (b"definitely not a certificate", "pem"),
    (b"\x30\x03\x02\x01\x01", "der"),
])
def test_garbage_is_malformed(data, fmt):
    with pytest.raises(MalformedCertificate) as exc:
        load_certificate(data, fmt)
    assert exc.value.stage == "decode"


def test_pem_declared_as_der_is_malformed(root_pem):
    with pytest.raises(MalformedCertificate):
        load_certificate(root_pem, "der")


def test_truncated_der_is_malformed(root_der):
    with pytest.raises(MalformedCertificate):
        load_certificate(root_der[:-40], "der")


def test_unknown_format(root_der):
    with pytest.raises(MalformedCertificate, match="unknown certificate format"):
        load_certificate(root_der, "p12")


def test_raw_extensions_keep_encoded_bytes(root_cert):
    raw = {ext.oid.dotted_string: ext for ext in raw_extensions(root_cert)}

    policies = raw["2.5.29.32"]
    assert policies.value.value == POLICIES_DER
    assert not policies.critical
    assert raw["2.5.29.19"].critical
    assert [ext.oid for ext in raw_extensions(root_cert)] == [ext.oid for ext in root_cert.extensions]


def test_describe_reports_encoded_extension_bytes(root_der):
    info = describe(load_certificate(root_der, "der"))
    assert ("2.5.29.32", False, POLICIES_DER) in info.extensions
