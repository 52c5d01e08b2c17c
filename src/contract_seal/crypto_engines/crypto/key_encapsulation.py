from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey, EllipticCurvePublicKey
from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.kdf.x963kdf import X963KDF
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat, load_der_public_key

from contract_seal.crypto_engines.keys.key_pair import KEMKeyPair
from contract_seal.my_types import Bytes


class KEM:
    """
    Key encapsulation agrees a key-encryption key with the holder of a static elliptic curve key. The sender generates
    an ephemeral key on the recipient's curve, runs ECDH against the recipient's static public key and stretches the
    shared secret with the X9.63 KDF. Only the ephemeral public key is sent; the recipient repeats the agreement with
    its static private key to recover the same key-encryption key.
    """

    ALGORITHM  = ec.ECDH
    KDF_HASH   = SHA256
    KEY_LENGTH = 32

    @staticmethod
    def derive(shared_secret: Bytes, shared_info: Bytes) -> Bytes:
        kdf = X963KDF(algorithm=KEM.KDF_HASH(), length=KEM.KEY_LENGTH, sharedinfo=shared_info)
        return kdf.derive(shared_secret)

    @staticmethod
    def kem_wrap(their_static_public_key: EllipticCurvePublicKey, shared_info: Bytes) -> KEMKeyPair:
        # Run the agreement from a fresh ephemeral key and package the ephemeral public key with the derived key.
        ephemeral_secret_key = ec.generate_private_key(their_static_public_key.curve)
        shared_secret = ephemeral_secret_key.exchange(KEM.ALGORITHM(), their_static_public_key)
        decapsulated_key = KEM.derive(shared_secret, shared_info)

        encapsulated_key = ephemeral_secret_key.public_key().public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
        return KEMKeyPair(encapsulated_key, decapsulated_key)

    @staticmethod
    def kem_unwrap(my_static_private_key: EllipticCurvePrivateKey, encapsulated_key: Bytes, shared_info: Bytes) -> KEMKeyPair:
        # Repeat the agreement against the sender's ephemeral public key. Raises ValueError for a key on another curve.
        their_ephemeral_public_key = load_der_public_key(encapsulated_key)
        if not isinstance(their_ephemeral_public_key, EllipticCurvePublicKey):
            raise ValueError("The encapsulated key is not an elliptic curve key")

        shared_secret = my_static_private_key.exchange(KEM.ALGORITHM(), their_ephemeral_public_key)
        decapsulated_key = KEM.derive(shared_secret, shared_info)
        return KEMKeyPair(encapsulated_key, decapsulated_key)
