from __future__ import annotations

import logging
from dataclasses import dataclass

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from contract_seal.crypto_engines.crypto.digital_signing import DigitalSigning
from contract_seal.crypto_engines.crypto.hashing import Hashing
from contract_seal.crypto_engines.keys.key_pair import KeyPair
from contract_seal.crypto_engines.tools.certificate import Certificates, KeyUsageFlags
from contract_seal.crypto_engines.tools.timestamp import ValidityWindow
from contract_seal.errors import CertificateConstructionError
from contract_seal.my_types import Int, Optional, Str, Union


DEFAULT_COMMON_NAME = "contract-seal"


@dataclass(kw_only=True, frozen=True)
class Identity:
    """
    A key pair together with the self-signed certificate that binds its public key. This is what a signer signs with,
    and what the recipient of an encrypted envelope unwraps with.
    """

    key_pair: KeyPair
    certificate: x509.Certificate

    @property
    def fingerprint(self) -> Str:
        return Certificates.fingerprint_text(self.certificate)


def generate_identity(curve: Union[Str, ec.EllipticCurve] = DigitalSigning.DEFAULT_CURVE) -> KeyPair:
    """
    Generate the key pair for a new identity on the given curve. Raises KeyGenerationError when the curve is unknown
    or the key generator fails; there is a single attempt.
    """

    key_pair = DigitalSigning.generate_key_pair(curve)
    logging.debug(f"Generated a {key_pair.public_key.curve.name} key pair")
    return key_pair


def issue_self_signed_certificate(
        key_pair: KeyPair,
        validity: Optional[ValidityWindow] = None,
        key_usage: Optional[KeyUsageFlags] = None,
        common_name: Str = DEFAULT_COMMON_NAME,
        serial_number: Optional[Int] = None) -> x509.Certificate:
    """
    Issue a certificate for the key pair, signed by the key pair itself. The subject and the issuer are the same name,
    the key usage comes from the given flags, and basic constraints mark the certificate as a non-CA end entity.

    Raises CertificateConstructionError for an empty or inverted validity window, a key usage with nothing enabled, a
    non-positive serial number, or anything else the certificate builder rejects.
    """

    validity = validity or ValidityWindow.starting_now()
    key_usage = key_usage or KeyUsageFlags()

    # Check the parameters the builder would otherwise accept or reject with a less useful message.
    if not validity.is_well_formed():
        raise CertificateConstructionError(
            f"notAfter ({validity.not_after.isoformat()}) must be later than notBefore ({validity.not_before.isoformat()})")
    if not key_usage.any_enabled():
        raise CertificateConstructionError("The key usage must enable at least one purpose")
    if serial_number is not None and serial_number <= 0:
        raise CertificateConstructionError(f"The serial number must be positive, got {serial_number}")

    try:
        subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
        digest_name = Hashing.for_curve(key_pair.public_key.curve)

        certificate = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(subject)
            .public_key(key_pair.public_key)
            .serial_number(serial_number or x509.random_serial_number())
            .not_valid_before(validity.not_before)
            .not_valid_after(validity.not_after)
            .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
            .add_extension(key_usage.to_extension(), critical=True)
            .add_extension(x509.SubjectKeyIdentifier.from_public_key(key_pair.public_key), critical=False)
            .sign(key_pair.secret_key, Hashing.algorithm(digest_name)))
    except (TypeError, ValueError, UnsupportedAlgorithm) as error:
        raise CertificateConstructionError(f"Could not build the certificate: {error}") from error

    logging.debug(f"Issued self-signed certificate {certificate.serial_number:x} for CN={common_name}")
    return certificate
