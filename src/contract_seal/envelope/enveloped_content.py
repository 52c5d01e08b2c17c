from __future__ import annotations

import logging

from asn1crypto import algos, cms, core, keys
from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.exceptions import InvalidKey, UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePublicKey
from cryptography.hazmat.primitives.keywrap import InvalidUnwrap

from contract_seal.crypto_engines.crypto.key_encapsulation import KEM
from contract_seal.crypto_engines.crypto.symmetric_encryption import SymmetricEncryption
from contract_seal.crypto_engines.keys.identity import Identity
from contract_seal.crypto_engines.tools.certificate import Certificates
from contract_seal.envelope.signed_envelope import SEQUENCE_TAG, as_universal
from contract_seal.errors import UnwrapError
from contract_seal.my_types import Bool, Bytes


# dhSinglePass-stdDH-sha256kdf-scheme (RFC 5753).
KEY_AGREEMENT_SCHEME = "1.3.132.1.11.1"
KEY_WRAP_ALGORITHM = "aes256_wrap"


class EccCmsSharedInfo(core.Sequence):
    _fields = [
        ("key_info", cms.KeyEncryptionAlgorithm),
        ("entity_u_info", core.OctetString, {"explicit": 0, "optional": True}),
        ("supp_pub_info", core.OctetString, {"explicit": 2}),
    ]


class EnvelopedContent:
    """
    EnvelopedContent seals a payload for one recipient certificate as a CMS EnvelopedData structure, and opens it
    again with the recipient's identity. The content key is fresh per envelope; it is wrapped with a key-encryption key
    agreed by ephemeral-static ECDH against the recipient certificate's public key.
    """

    @staticmethod
    def shared_info() -> Bytes:
        # The KDF input binds the derived key to the wrap algorithm and its length in bits.
        key_bits = SymmetricEncryption.KEY_LENGTH * 8
        return EccCmsSharedInfo({
            "key_info": {"algorithm": KEY_WRAP_ALGORITHM},
            "supp_pub_info": key_bits.to_bytes(4, "big"),
        }).dump()

    @staticmethod
    def seal(payload: Bytes, recipient: x509.Certificate) -> Bytes:
        recipient_key = recipient.public_key()
        if not isinstance(recipient_key, EllipticCurvePublicKey):
            raise TypeError("The recipient certificate does not carry an elliptic curve key")
        asn1_recipient = asn1_x509.Certificate.load(Certificates.dump(recipient))

        # Encrypt the payload under a fresh content key, then wrap that key for the recipient.
        content_key = SymmetricEncryption.generate_key()
        iv, ciphertext = SymmetricEncryption.encrypt(payload, content_key)
        agreement = KEM.kem_wrap(recipient_key, EnvelopedContent.shared_info())
        wrapped_key = SymmetricEncryption.wrap_new_key(agreement.decapsulated_key, content_key)

        key_agreement = cms.KeyAgreeRecipientInfo({
            "version": "v3",
            "originator": cms.OriginatorIdentifierOrKey({
                "originator_key": keys.PublicKeyInfo.load(agreement.encapsulated_key),
            }),
            "key_encryption_algorithm": cms.KeyEncryptionAlgorithm({
                "algorithm": KEY_AGREEMENT_SCHEME,
                "parameters": cms.KeyEncryptionAlgorithm({"algorithm": KEY_WRAP_ALGORITHM}),
            }),
            "recipient_encrypted_keys": [
                cms.RecipientEncryptedKey({
                    "rid": cms.KeyAgreementRecipientIdentifier({
                        "issuer_and_serial_number": cms.IssuerAndSerialNumber({
                            "issuer": asn1_recipient.issuer,
                            "serial_number": asn1_recipient.serial_number,
                        }),
                    }),
                    "encrypted_key": wrapped_key,
                }),
            ],
        })

        enveloped_data = cms.EnvelopedData({
            "version": "v2",
            "recipient_infos": [cms.RecipientInfo({"kari": key_agreement})],
            "encrypted_content_info": {
                "content_type": "data",
                "content_encryption_algorithm": algos.EncryptionAlgorithm({
                    "algorithm": SymmetricEncryption.CMS_NAME,
                    "parameters": iv,
                }),
                "encrypted_content": ciphertext,
            },
        })

        logging.debug(f"Sealed {len(payload)} bytes for certificate {asn1_recipient.serial_number:x}")
        return enveloped_data.dump()

    @staticmethod
    def open(data: Bytes, identity: Identity) -> Bytes:
        try:
            enveloped_data = cms.EnvelopedData.load(data, strict=True)
            asn1_recipient = asn1_x509.Certificate.load(Certificates.dump(identity.certificate))

            # Find the wrapped key addressed to this identity's certificate.
            for recipient_info in enveloped_data["recipient_infos"]:
                if recipient_info.name != "kari":
                    continue
                key_agreement = recipient_info.chosen
                for encrypted_key in key_agreement["recipient_encrypted_keys"]:
                    if EnvelopedContent._addressed_to(encrypted_key["rid"], asn1_recipient):
                        return EnvelopedContent._decrypt(
                            key_agreement, encrypted_key["encrypted_key"].native,
                            enveloped_data["encrypted_content_info"], identity)
        except (ValueError, TypeError, KeyError, IndexError, InvalidUnwrap, InvalidKey, UnsupportedAlgorithm) as error:
            raise UnwrapError(f"Could not open the encrypted content: {error}") from error

        raise UnwrapError("The encrypted content is not addressed to this identity")

    @staticmethod
    def _addressed_to(recipient_id: cms.KeyAgreementRecipientIdentifier, candidate: asn1_x509.Certificate) -> Bool:
        if recipient_id.name == "issuer_and_serial_number":
            issuer_and_serial = recipient_id.chosen
            return (candidate.serial_number == issuer_and_serial["serial_number"].native
                    and candidate.issuer.hashable == issuer_and_serial["issuer"].hashable)
        if recipient_id.name == "r_key_id":
            return candidate.key_identifier == recipient_id.chosen["subject_key_identifier"].native
        return False

    @staticmethod
    def _decrypt(key_agreement: cms.KeyAgreeRecipientInfo, wrapped_key: Bytes, encrypted_content_info: cms.EncryptedContentInfo, identity: Identity) -> Bytes:
        scheme = key_agreement["key_encryption_algorithm"]["algorithm"].dotted
        if scheme != KEY_AGREEMENT_SCHEME:
            raise UnwrapError(f"Unsupported key agreement scheme {scheme}")

        originator = key_agreement["originator"]
        if originator.name != "originator_key":
            raise UnwrapError("The originator did not supply an ephemeral public key")

        # Repeat the key agreement, recover the content key and decrypt.
        ephemeral_public_key = as_universal(originator.chosen, SEQUENCE_TAG)
        agreement = KEM.kem_unwrap(identity.key_pair.secret_key, ephemeral_public_key, EnvelopedContent.shared_info())
        content_key = SymmetricEncryption.unwrap_new_key(agreement.decapsulated_key, wrapped_key)

        content_algorithm = encrypted_content_info["content_encryption_algorithm"]
        if content_algorithm["algorithm"].native != SymmetricEncryption.CMS_NAME:
            raise UnwrapError(f"Unsupported content encryption algorithm {content_algorithm['algorithm'].native}")

        iv = content_algorithm["parameters"].native
        ciphertext = encrypted_content_info["encrypted_content"].native
        if ciphertext is None:
            raise UnwrapError("The encrypted content is detached")
        return SymmetricEncryption.decrypt(iv, ciphertext, content_key)
