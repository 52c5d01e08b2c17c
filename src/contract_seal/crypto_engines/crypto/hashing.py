from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurve
from cryptography.hazmat.primitives.hashes import Hash, HashAlgorithm, SHA256, SHA384, SHA512

from contract_seal.my_types import Bytes, Str


class Hashing:
    """
    Hashing is used to produce fixed length digests from any length input. Envelopes sign the digest of the payload
    rather than the payload itself, so the digest algorithm is named inside every envelope and looked up here.
    """

    ALGORITHMS = {
        "sha256": SHA256,
        "sha384": SHA384,
        "sha512": SHA512,
    }

    @staticmethod
    def algorithm(name: Str) -> HashAlgorithm:
        # Look up the hash algorithm by its CMS name.
        if name not in Hashing.ALGORITHMS:
            raise ValueError(f"Unsupported digest algorithm: {name}")
        return Hashing.ALGORITHMS[name]()

    @staticmethod
    def for_curve(curve: EllipticCurve) -> Str:
        # Match the digest strength to the curve strength (P-256 -> SHA-256, P-384 -> SHA-384, P-521 -> SHA-512).
        if curve.key_size <= 256:
            return "sha256"
        if curve.key_size <= 384:
            return "sha384"
        return "sha512"

    @staticmethod
    def hash(input_bytes: Bytes, name: Str = "sha256") -> Bytes:
        # Hash the input bytes and return the result.
        hash_engine = Hash(Hashing.algorithm(name))
        hash_engine.update(input_bytes)
        hashed = bytes(hash_engine.finalize())
        return hashed
