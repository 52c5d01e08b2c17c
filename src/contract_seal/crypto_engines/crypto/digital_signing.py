from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey, EllipticCurvePublicKey

from contract_seal.crypto_engines.crypto.hashing import Hashing
from contract_seal.crypto_engines.keys.key_pair import KeyPair
from contract_seal.errors import KeyGenerationError
from contract_seal.my_types import Bytes, Str, Union


class DigitalSigning:
    """
    Digital signing is used to sign envelopes, so that the recipient can verify that the payload was produced by the
    holder of a specific private key. There are methods for generating key pairs on a named curve, and for signing and
    verifying with ECDSA. The nonce for every signature is generated inside the call, so a shared private key is safe
    to use from several signers at once.
    """

    CURVES = {
        "P-256": ec.SECP256R1,
        "P-384": ec.SECP384R1,
        "P-521": ec.SECP521R1,
        "secp256r1": ec.SECP256R1,
        "secp384r1": ec.SECP384R1,
        "secp521r1": ec.SECP521R1,
    }
    DEFAULT_CURVE = "P-256"

    @staticmethod
    def curve(curve: Union[Str, ec.EllipticCurve]) -> ec.EllipticCurve:
        # Accept either a curve object or one of the supported curve names.
        if isinstance(curve, ec.EllipticCurve):
            return curve
        if curve not in DigitalSigning.CURVES:
            raise KeyGenerationError(f"Unsupported curve: {curve}")
        return DigitalSigning.CURVES[curve]()

    @staticmethod
    def generate_key_pair(curve: Union[Str, ec.EllipticCurve] = DEFAULT_CURVE) -> KeyPair:
        # Generate a key pair and package it into a KeyPair object.
        named_curve = DigitalSigning.curve(curve)
        try:
            secret_key = ec.generate_private_key(named_curve)
        except (OSError, ValueError, UnsupportedAlgorithm) as error:
            raise KeyGenerationError(f"Could not generate a {named_curve.name} key: {error}") from error
        return KeyPair(secret_key, secret_key.public_key())

    @staticmethod
    def sign(my_static_private_key: EllipticCurvePrivateKey, message: Bytes, digest_name: Str) -> Bytes:
        # Hash the message with the named digest and sign it; the result is a DER encoded ECDSA signature.
        algorithm = Hashing.algorithm(digest_name)
        signature = my_static_private_key.sign(message, ec.ECDSA(algorithm))
        return bytes(signature)

    @staticmethod
    def verify(their_static_public_key: EllipticCurvePublicKey, message: Bytes, signature: Bytes, digest_name: Str) -> bool:
        # Raises InvalidSignature if the signature does not match.
        algorithm = Hashing.algorithm(digest_name)
        their_static_public_key.verify(signature, message, ec.ECDSA(algorithm))
        return True
