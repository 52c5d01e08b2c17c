from __future__ import annotations

from dataclasses import dataclass

import base58
from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePublicKey
from cryptography.hazmat.primitives.constant_time import bytes_eq
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from contract_seal.errors import EncodingError
from contract_seal.my_types import Bool, Bytes, Str, Union
from contract_seal.storage.persistence import PathLike, Persistence

PublicKeyPin = Union[x509.Certificate, EllipticCurvePublicKey]


@dataclass(kw_only=True, frozen=True)
class KeyUsageFlags:
    digital_signature: Bool = True
    content_commitment: Bool = False
    key_agreement: Bool = False

    def any_enabled(self) -> Bool:
        return self.digital_signature or self.content_commitment or self.key_agreement

    def to_extension(self) -> x509.KeyUsage:
        # Everything not modelled here is a CA or RSA purpose, and stays off for a self-signed EC identity.
        return x509.KeyUsage(
            digital_signature=self.digital_signature,
            content_commitment=self.content_commitment,
            key_encipherment=False,
            data_encipherment=False,
            key_agreement=self.key_agreement,
            key_cert_sign=False,
            crl_sign=False,
            encipher_only=False,
            decipher_only=False)


class Certificates:
    """
    Helpers for the certificate that carries an identity's public key: PEM persistence, the self-signature check, the
    fingerprint shown to users, and the constant time public key comparison used for pinning.
    """

    LABEL = "CERTIFICATE"
    FINGERPRINT_ALGORITHM = hashes.SHA256

    @staticmethod
    def dump(certificate: x509.Certificate) -> Bytes:
        return certificate.public_bytes(Encoding.DER)

    @staticmethod
    def load(pem_bytes: Bytes) -> x509.Certificate:
        der = Persistence.decode_block(pem_bytes, Certificates.LABEL)
        return Certificates.load_der(der)

    @staticmethod
    def load_der(der: Bytes) -> x509.Certificate:
        try:
            return x509.load_der_x509_certificate(der)
        except (TypeError, ValueError, x509.InvalidVersion, UnsupportedAlgorithm) as error:
            raise EncodingError(f"Could not load the certificate: {error}") from error

    @staticmethod
    def export(certificate: x509.Certificate, path: PathLike) -> x509.Certificate:
        Persistence.write_block(path, Certificates.LABEL, Certificates.dump(certificate))
        return certificate

    @staticmethod
    def import_(path: PathLike) -> x509.Certificate:
        return Certificates.load(Persistence.read_file(path))

    @staticmethod
    def verify_self_signature(certificate: x509.Certificate) -> Bool:
        # A self-signed certificate names itself as issuer and verifies under its own public key.
        try:
            certificate.verify_directly_issued_by(certificate)
        except (InvalidSignature, TypeError, ValueError, UnsupportedAlgorithm):
            return False
        return True

    @staticmethod
    def fingerprint(certificate: x509.Certificate) -> Bytes:
        return certificate.fingerprint(Certificates.FINGERPRINT_ALGORITHM())

    @staticmethod
    def fingerprint_text(certificate: x509.Certificate) -> Str:
        # The base58 form is what gets printed for users to compare.
        return base58.b58encode(Certificates.fingerprint(certificate)).decode("utf-8")

    @staticmethod
    def public_key_bytes(pin: PublicKeyPin) -> Bytes:
        public_key = pin.public_key() if isinstance(pin, x509.Certificate) else pin
        return public_key.public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)

    @staticmethod
    def same_public_key(lhs: PublicKeyPin, rhs: PublicKeyPin) -> Bool:
        # Compare the encoded public keys with a constant time comparison.
        return bytes_eq(Certificates.public_key_bytes(lhs), Certificates.public_key_bytes(rhs))
