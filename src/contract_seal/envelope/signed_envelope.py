from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from asn1crypto import cms, core, parser
from asn1crypto import x509 as asn1_x509
from cryptography import x509

from contract_seal.crypto_engines.tools.certificate import Certificates
from contract_seal.errors import EncodingError
from contract_seal.my_types import Bool, Bytes, Int, Optional, Str


SET_TAG = 17
SEQUENCE_TAG = 16


def as_universal(value: core.Asn1Value, tag: Int) -> Bytes:
    # Re-encode the content octets under the universal constructed tag, dropping any implicit or explicit tagging.
    value.dump()
    return parser.emit(0, 1, tag, value.contents)


class EnvelopeMode(Enum):
    """
    How the payload sits inside the signed structure, read from the encapsulated content type. The two modes are told
    apart by the structure alone, never by what the caller expects.
    """

    EMBEDDED = "data"
    ENCRYPTED = "enveloped_data"


class EnvelopeState(Enum):
    CREATED = "created"
    SIGNED = "signed"
    VERIFIED = "verified"
    UNWRAPPED = "unwrapped"
    EXECUTED = "executed"
    DISCARDED = "discarded"


@dataclass(kw_only=True, frozen=True)
class SignedEnvelope:
    """
    A parsed CMS SignedData envelope. Envelopes are only ever built by parsing DER, so every field reflects the bytes
    that were signed or received, and the DER is kept so the envelope can be written out exactly as it arrived.

    Attributes
    - content: The encapsulated content (the payload, or an EnvelopedData structure when encrypted).
    - mode: Whether the content is the plain payload or an encrypted EnvelopedData structure.
    - detached: Whether the content travelled outside the DER.
    - signed_attributes: The signed attributes re-encoded as a SET, which is what the signature covers.
    - message_digest: The digest of the content as recorded in the signed attributes.
    """

    content: Optional[Bytes]
    mode: EnvelopeMode
    detached: Bool
    digest_algorithm: Str
    signature_algorithm: Str
    signer_certificate: x509.Certificate
    signature_value: Bytes
    signed_attributes: Optional[Bytes]
    message_digest: Optional[Bytes]
    signed_content_type: Optional[Str]
    der: Bytes = field(repr=False)

    @property
    def payload(self) -> Optional[Bytes]:
        # Only an embedded envelope carries the payload as-is.
        return self.content if self.mode is EnvelopeMode.EMBEDDED else None

    def to_der(self) -> Bytes:
        return self.der

    @staticmethod
    def from_der(data: Bytes, detached_content: Optional[Bytes] = None) -> SignedEnvelope:
        try:
            return SignedEnvelope._parse(data, detached_content)
        except (ValueError, TypeError, KeyError, IndexError, OverflowError) as error:
            raise EncodingError(f"Malformed signed envelope: {error}") from error

    @staticmethod
    def _parse(data: Bytes, detached_content: Optional[Bytes]) -> SignedEnvelope:
        content_info = cms.ContentInfo.load(data, strict=True)
        if content_info["content_type"].native != "signed_data":
            raise ValueError(f"expected signed data, found {content_info['content_type'].native}")
        signed_data = content_info["content"]

        # Work out the mode from the encapsulated content type, and pick up the content if it is embedded.
        encapsulated = signed_data["encap_content_info"]
        content_type = encapsulated["content_type"].native
        modes = {mode.value: mode for mode in EnvelopeMode}
        if content_type not in modes:
            raise ValueError(f"unsupported content type {content_type}")

        # Plain data arrives as an octet string; enveloped data is parsed as a structure and re-encoded on its own.
        encapsulated_content = encapsulated["content"]
        detached = isinstance(encapsulated_content, core.Void)
        if detached:
            content = detached_content
        elif isinstance(encapsulated_content, (core.OctetString, core.ParsableOctetString)):
            content = encapsulated_content.native
        else:
            content = as_universal(encapsulated_content, SEQUENCE_TAG)

        signer_infos = signed_data["signer_infos"]
        if len(signer_infos) != 1:
            raise ValueError(f"expected exactly one signer, found {len(signer_infos)}")
        signer_info = signer_infos[0]
        signer_certificate = SignedEnvelope._find_signer_certificate(signed_data, signer_info["sid"])

        # The signature covers the signed attributes when they are present, and the content otherwise.
        signed_attributes = None
        message_digest = None
        signed_content_type = None
        attributes = signer_info["signed_attrs"]
        if not isinstance(attributes, core.Void):
            signed_attributes = as_universal(attributes, SET_TAG)
            for attribute in attributes:
                name = attribute["type"].native
                if name == "message_digest":
                    message_digest = attribute["values"][0].native
                elif name == "content_type":
                    signed_content_type = attribute["values"][0].native

        return SignedEnvelope(
            content=content,
            mode=modes[content_type],
            detached=detached,
            digest_algorithm=signer_info["digest_algorithm"]["algorithm"].native,
            signature_algorithm=signer_info["signature_algorithm"]["algorithm"].native,
            signer_certificate=signer_certificate,
            signature_value=signer_info["signature"].native,
            signed_attributes=signed_attributes,
            message_digest=message_digest,
            signed_content_type=signed_content_type,
            der=bytes(data))

    @staticmethod
    def _find_signer_certificate(signed_data: cms.SignedData, signer_id: cms.SignerIdentifier) -> x509.Certificate:
        certificates = signed_data["certificates"]
        if isinstance(certificates, core.Void):
            raise ValueError("no certificates are embedded")

        for choice in certificates:
            if choice.name != "certificate":
                continue
            if SignedEnvelope._identifies(signer_id, choice.chosen):
                return Certificates.load_der(choice.chosen.dump())
        raise ValueError("the signer certificate is not embedded")

    @staticmethod
    def _identifies(signer_id: cms.SignerIdentifier, candidate: asn1_x509.Certificate) -> Bool:
        if signer_id.name == "issuer_and_serial_number":
            issuer_and_serial = signer_id.chosen
            return (candidate.serial_number == issuer_and_serial["serial_number"].native
                    and candidate.issuer.hashable == issuer_and_serial["issuer"].hashable)
        if signer_id.name == "subject_key_identifier":
            return candidate.key_identifier == signer_id.chosen.native
        return False
