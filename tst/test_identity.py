from datetime import timedelta

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import ec
import pytest

from contract_seal.crypto_engines.crypto import digital_signing
from contract_seal.crypto_engines.keys.identity import generate_identity, issue_self_signed_certificate
from contract_seal.crypto_engines.tools.certificate import Certificates, KeyUsageFlags
from contract_seal.crypto_engines.tools.timestamp import Timestamp, ValidityWindow
from contract_seal.errors import CertificateConstructionError, KeyGenerationError

# The P-256 base point.
P256_GX = 0x6B17D1F2E12C4247F8BCE6E563A440F277037D812DEB33A0F4A13945D898C296
P256_GY = 0x4FE342E2FE1A7F9B8EE7EB4A7C0F9E162BCE33576B315ECECBB6406837BF51F5


def test_public_key_is_secret_times_generator():
    key_pair = generate_identity()
    assert isinstance(key_pair.public_key.curve, ec.SECP256R1)

    # Deriving the public key from the secret scalar gives the same point.
    secret = key_pair.secret_key.private_numbers().private_value
    derived = ec.derive_private_key(secret, ec.SECP256R1()).public_key()
    assert derived.public_numbers() == key_pair.public_key.public_numbers()

    # And the scalar 1 gives the generator itself.
    generator = ec.derive_private_key(1, ec.SECP256R1()).public_key().public_numbers()
    assert (generator.x, generator.y) == (P256_GX, P256_GY)


def test_other_curves():
    assert isinstance(generate_identity("P-384").public_key.curve, ec.SECP384R1)
    assert isinstance(generate_identity("secp521r1").public_key.curve, ec.SECP521R1)


def test_key_generator_failure(monkeypatch):
    def failing_generator(curve):
        raise OSError("entropy source unavailable")

    monkeypatch.setattr(digital_signing.ec, "generate_private_key", failing_generator)
    with pytest.raises(KeyGenerationError):
        generate_identity()


def test_self_signed_certificate():
    key_pair = generate_identity()
    certificate = issue_self_signed_certificate(key_pair, common_name="alice")

    assert certificate.subject == certificate.issuer
    assert certificate.serial_number > 0
    assert Certificates.verify_self_signature(certificate)
    assert Certificates.same_public_key(certificate, key_pair.public_key)

    key_usage = certificate.extensions.get_extension_for_class(x509.KeyUsage)
    assert key_usage.critical and key_usage.value.digital_signature
    basic_constraints = certificate.extensions.get_extension_for_class(x509.BasicConstraints)
    assert basic_constraints.critical and not basic_constraints.value.ca


def test_certificate_validity_and_serial():
    key_pair = generate_identity()
    now = Timestamp.now().replace(microsecond=0)
    window = ValidityWindow.starting_now(days=10, now=now)
    certificate = issue_self_signed_certificate(key_pair, validity=window, serial_number=1)

    assert certificate.serial_number == 1
    assert certificate.not_valid_before_utc == now
    assert certificate.not_valid_after_utc - certificate.not_valid_before_utc == timedelta(days=10)


def test_certificates_for_different_keys_differ():
    certificate = issue_self_signed_certificate(generate_identity())
    other = issue_self_signed_certificate(generate_identity())
    assert not Certificates.same_public_key(certificate, other)
    assert Certificates.fingerprint(certificate) != Certificates.fingerprint(other)


def test_inverted_validity_window():
    now = Timestamp.now()
    window = ValidityWindow(not_before=now, not_after=now - timedelta(days=1))
    with pytest.raises(CertificateConstructionError):
        issue_self_signed_certificate(generate_identity(), validity=window)


def test_empty_key_usage():
    usage = KeyUsageFlags(digital_signature=False)
    with pytest.raises(CertificateConstructionError):
        issue_self_signed_certificate(generate_identity(), key_usage=usage)


def test_non_positive_serial():
    with pytest.raises(CertificateConstructionError):
        issue_self_signed_certificate(generate_identity(), serial_number=-5)


def test_certificate_export(tmp_path):
    certificate = issue_self_signed_certificate(generate_identity())
    Certificates.export(certificate, tmp_path / "certificate.crt")

    assert (tmp_path / "certificate.crt").read_bytes().startswith(b"-----BEGIN CERTIFICATE-----")
    assert Certificates.import_(tmp_path / "certificate.crt") == certificate


def test_validity_window():
    now = Timestamp.now()
    window = ValidityWindow.starting_now(days=1, now=now)
    assert window.is_well_formed()
    assert window.contains(now + timedelta(hours=1))
    assert not window.contains(now + timedelta(days=2))
