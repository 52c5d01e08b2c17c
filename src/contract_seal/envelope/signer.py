from __future__ import annotations

import logging

from asn1crypto import algos, cms
from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey

from contract_seal.crypto_engines.crypto.digital_signing import DigitalSigning
from contract_seal.crypto_engines.crypto.hashing import Hashing
from contract_seal.crypto_engines.tools.certificate import Certificates
from contract_seal.crypto_engines.tools.timestamp import Timestamp
from contract_seal.envelope.enveloped_content import EnvelopedContent
from contract_seal.envelope.signed_envelope import EnvelopeMode, SignedEnvelope
from contract_seal.errors import EncodingError, SigningError
from contract_seal.my_types import Bool, Bytes, Optional, Str


class EnvelopeSigner:
    """
    EnvelopeSigner produces a CMS SignedData envelope with exactly one signer. The signer certificate is embedded, the
    signed attributes record the content type, the signing time and the content digest, and the ECDSA signature is
    computed over the DER of those attributes.

    When a recipient certificate is given, the payload is first sealed for that recipient and the resulting
    EnvelopedData structure is signed in its place. Otherwise the payload is embedded as plain data, or left out of the
    structure entirely when a detached signature is asked for.

    The key and the certificate are not checked against each other here. An envelope signed with a key the
    certificate does not bind is produced without complaint, and fails verification.
    """

    @staticmethod
    def sign(
            payload: Bytes,
            my_static_private_key: EllipticCurvePrivateKey,
            certificate: x509.Certificate,
            recipient: Optional[x509.Certificate] = None,
            detached: Bool = False,
            digest_algorithm: Optional[Str] = None) -> SignedEnvelope:

        if not isinstance(my_static_private_key, EllipticCurvePrivateKey):
            raise SigningError("Only elliptic curve private keys can sign envelopes")
        if recipient is not None and detached:
            raise SigningError("An encrypted envelope always embeds its content")

        try:
            return EnvelopeSigner._sign(payload, my_static_private_key, certificate, recipient, detached, digest_algorithm)
        except (TypeError, ValueError, UnsupportedAlgorithm, EncodingError) as error:
            raise SigningError(f"Could not sign the payload: {error}") from error

    @staticmethod
    def _sign(
            payload: Bytes,
            my_static_private_key: EllipticCurvePrivateKey,
            certificate: x509.Certificate,
            recipient: Optional[x509.Certificate],
            detached: Bool,
            digest_algorithm: Optional[Str]) -> SignedEnvelope:

        digest_name = digest_algorithm or Hashing.for_curve(my_static_private_key.curve)
        Hashing.algorithm(digest_name)

        # Seal the payload first if it is meant for a single recipient.
        mode = EnvelopeMode.EMBEDDED
        content = bytes(payload)
        if recipient is not None:
            mode = EnvelopeMode.ENCRYPTED
            content = EnvelopedContent.seal(content, recipient)

        # Build the signed attributes and sign their DER encoding.
        signed_attributes = cms.CMSAttributes([
            cms.CMSAttribute({"type": "content_type", "values": [mode.value]}),
            cms.CMSAttribute({"type": "signing_time", "values": [cms.Time({"utc_time": Timestamp.now()})]}),
            cms.CMSAttribute({"type": "message_digest", "values": [Hashing.hash(content, digest_name)]}),
        ])
        signature = DigitalSigning.sign(my_static_private_key, signed_attributes.dump(), digest_name)

        asn1_certificate = asn1_x509.Certificate.load(Certificates.dump(certificate))
        signer_info = cms.SignerInfo({
            "version": "v1",
            "sid": cms.SignerIdentifier({
                "issuer_and_serial_number": cms.IssuerAndSerialNumber({
                    "issuer": asn1_certificate.issuer,
                    "serial_number": asn1_certificate.serial_number,
                }),
            }),
            "digest_algorithm": algos.DigestAlgorithm({"algorithm": digest_name}),
            "signed_attrs": signed_attributes,
            "signature_algorithm": algos.SignedDigestAlgorithm({"algorithm": f"{digest_name}_ecdsa"}),
            "signature": signature,
        })

        # Assemble the SignedData structure, leaving the content out for a detached signature.
        encapsulated_content = {"content_type": mode.value}
        if not detached and mode is EnvelopeMode.ENCRYPTED:
            encapsulated_content["content"] = cms.EnvelopedData.load(content)
        elif not detached:
            encapsulated_content["content"] = content

        signed_data = cms.SignedData({
            "version": "v1" if mode is EnvelopeMode.EMBEDDED else "v3",
            "digest_algorithms": [algos.DigestAlgorithm({"algorithm": digest_name})],
            "encap_content_info": encapsulated_content,
            "certificates": [cms.CertificateChoices({"certificate": asn1_certificate})],
            "signer_infos": [signer_info],
        })
        der = cms.ContentInfo({"content_type": "signed_data", "content": signed_data}).dump()

        logging.debug(f"Signed {len(payload)} bytes ({mode.name.lower()}, {digest_name}, detached={detached})")
        return SignedEnvelope.from_der(der, detached_content=content if detached else None)
