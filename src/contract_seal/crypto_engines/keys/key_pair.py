from __future__ import annotations

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey, EllipticCurvePublicKey
from cryptography.hazmat.primitives.serialization import (
    Encoding, NoEncryption, PrivateFormat, PublicFormat, load_der_private_key, load_der_public_key)

from contract_seal.errors import EncodingError
from contract_seal.my_types import Bytes, Optional
from contract_seal.storage.persistence import PathLike, Persistence


class KeyPair:
    """
    An elliptic curve key pair. The secret key stays with the signer; the public key is shared freely, both inside the
    certificate and as its own PEM file. When only the secret key is given, the public key is derived from it.
    """

    SECRET_KEY_LABEL = "EC PRIVATE KEY"
    PUBLIC_KEY_LABEL = "PUBLIC KEY"

    _secret_key: Optional[EllipticCurvePrivateKey]
    _public_key: Optional[EllipticCurvePublicKey]

    def __init__(self, secret_key: Optional[EllipticCurvePrivateKey] = None, public_key: Optional[EllipticCurvePublicKey] = None) -> None:
        self._secret_key = secret_key
        self._public_key = public_key
        if public_key is None and secret_key is not None:
            self._public_key = secret_key.public_key()

    @property
    def secret_key(self) -> EllipticCurvePrivateKey:
        assert self._secret_key is not None
        return self._secret_key

    @property
    def public_key(self) -> EllipticCurvePublicKey:
        assert self._public_key is not None
        return self._public_key

    def secret_key_der(self) -> Bytes:
        # SEC1 "traditional" encoding, which is what the EC PRIVATE KEY label denotes.
        try:
            return self.secret_key.private_bytes(Encoding.DER, PrivateFormat.TraditionalOpenSSL, NoEncryption())
        except (TypeError, ValueError) as error:
            raise EncodingError(f"Could not encode the private key: {error}") from error

    def public_key_der(self) -> Bytes:
        try:
            return self.public_key.public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
        except (TypeError, ValueError) as error:
            raise EncodingError(f"Could not encode the public key: {error}") from error

    def export_secret_key(self, path: PathLike) -> KeyPair:
        Persistence.write_block(path, KeyPair.SECRET_KEY_LABEL, self.secret_key_der(), private=True)
        return self

    def export_public_key(self, path: PathLike) -> KeyPair:
        Persistence.write_block(path, KeyPair.PUBLIC_KEY_LABEL, self.public_key_der())
        return self

    def import_(self, secret_key_path: Optional[PathLike] = None, public_key_path: Optional[PathLike] = None) -> KeyPair:
        # Load whichever halves were asked for, deriving the public key if only the secret key is available.
        if secret_key_path is not None:
            self._secret_key = KeyPair.load_secret_key(Persistence.read_file(secret_key_path))
            self._public_key = self._secret_key.public_key()
        if public_key_path is not None:
            self._public_key = KeyPair.load_public_key(Persistence.read_file(public_key_path))
        return self

    @staticmethod
    def load_secret_key(pem_bytes: Bytes) -> EllipticCurvePrivateKey:
        der = Persistence.decode_block(pem_bytes, KeyPair.SECRET_KEY_LABEL)
        try:
            secret_key = load_der_private_key(der, password=None)
        except (TypeError, ValueError, UnsupportedAlgorithm) as error:
            raise EncodingError(f"Could not load the private key: {error}") from error

        if not isinstance(secret_key, EllipticCurvePrivateKey):
            raise EncodingError("The private key is not an elliptic curve key")
        return secret_key

    @staticmethod
    def load_public_key(pem_bytes: Bytes) -> EllipticCurvePublicKey:
        der = Persistence.decode_block(pem_bytes, KeyPair.PUBLIC_KEY_LABEL)
        try:
            public_key = load_der_public_key(der)
        except (TypeError, ValueError, UnsupportedAlgorithm) as error:
            raise EncodingError(f"Could not load the public key: {error}") from error

        if not isinstance(public_key, EllipticCurvePublicKey):
            raise EncodingError("The public key is not an elliptic curve key")
        return public_key


class KEMKeyPair:
    """
    The result of an ephemeral-static key agreement: the encapsulated key is the ephemeral public key (DER) that
    travels with the envelope, the decapsulated key is the derived key-encryption key that never does.
    """

    _encapsulated_key: Bytes
    _decapsulated_key: Bytes

    def __init__(self, encapsulated_key: Bytes, decapsulated_key: Bytes) -> None:
        self._encapsulated_key = encapsulated_key
        self._decapsulated_key = decapsulated_key

    @property
    def encapsulated_key(self) -> Bytes:
        return self._encapsulated_key

    @property
    def decapsulated_key(self) -> Bytes:
        return self._decapsulated_key
