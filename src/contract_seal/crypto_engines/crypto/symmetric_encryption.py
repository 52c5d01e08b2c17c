from cryptography.hazmat.primitives.ciphers import Cipher
from cryptography.hazmat.primitives.ciphers.algorithms import AES
from cryptography.hazmat.primitives.ciphers.modes import CBC
from cryptography.hazmat.primitives.keywrap import aes_key_unwrap, aes_key_wrap
from cryptography.hazmat.primitives.padding import PKCS7

from contract_seal.crypto_engines.tools.random import Random
from contract_seal.my_types import Bytes, Tuple


class SymmetricEncryption:
    """
    Symmetric encryption protects the content of an encrypted envelope. The content is encrypted with AES-256-CBC under
    a fresh content key, and the content key is wrapped (AES key wrap) with the key-encryption key agreed with the
    recipient. Integrity comes from the outer signature.
    """

    ALGORITHM  = AES
    CMS_NAME   = "aes256_cbc"
    KEY_LENGTH = 32
    IV_LENGTH  = 16

    @staticmethod
    def generate_key() -> Bytes:
        # Generate a random key and return it.
        random_key = Random.random_bytes(SymmetricEncryption.KEY_LENGTH)
        return random_key

    @staticmethod
    def wrap_new_key(current_key: Bytes, new_key: Bytes) -> Bytes:
        # Wrap the new key using the current key and return it.
        wrapped_key = aes_key_wrap(current_key, new_key)
        return bytes(wrapped_key)

    @staticmethod
    def unwrap_new_key(current_key: Bytes, wrapped_key: Bytes) -> Bytes:
        # Unwrap the new key using the current key and return it. Raises InvalidUnwrap for the wrong key.
        unwrapped_key = aes_key_unwrap(current_key, wrapped_key)
        return bytes(unwrapped_key)

    @staticmethod
    def encrypt(data: Bytes, key: Bytes) -> Tuple[Bytes, Bytes]:
        # Generate a random IV, pad and encrypt the plaintext, and return the IV alongside the ciphertext.
        iv = Random.random_bytes(SymmetricEncryption.IV_LENGTH)
        padder = PKCS7(SymmetricEncryption.ALGORITHM.block_size).padder()
        padded = padder.update(data) + padder.finalize()

        encryption_engine = Cipher(SymmetricEncryption.ALGORITHM(key), CBC(iv)).encryptor()
        ciphertext = encryption_engine.update(padded) + encryption_engine.finalize()
        return iv, bytes(ciphertext)

    @staticmethod
    def decrypt(iv: Bytes, ciphertext: Bytes, key: Bytes) -> Bytes:
        # Decrypt the data and strip the padding. Raises ValueError for a bad key, IV or ciphertext length.
        decryption_engine = Cipher(SymmetricEncryption.ALGORITHM(key), CBC(iv)).decryptor()
        padded = decryption_engine.update(ciphertext) + decryption_engine.finalize()

        unpadder = PKCS7(SymmetricEncryption.ALGORITHM.block_size).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return bytes(plaintext)
