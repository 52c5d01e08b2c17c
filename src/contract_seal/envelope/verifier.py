from __future__ import annotations

import logging
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePublicKey
from cryptography.hazmat.primitives.constant_time import bytes_eq

from contract_seal.crypto_engines.crypto.digital_signing import DigitalSigning
from contract_seal.crypto_engines.crypto.hashing import Hashing
from contract_seal.crypto_engines.tools.certificate import Certificates, PublicKeyPin
from contract_seal.envelope.signed_envelope import SignedEnvelope
from contract_seal.errors import EncodingError, VerificationError, VerificationFailure
from contract_seal.my_types import Bool, Bytes, Optional, Str, Union


@dataclass(kw_only=True, frozen=True)
class TrustDecision:
    """
    The outcome of verifying one envelope against one pinned key. A decision is only good for the envelope it was made
    for; the unwrapper checks this before releasing any content.
    """

    trusted: Bool
    envelope: Optional[SignedEnvelope] = None
    failure: Optional[VerificationError] = None
    signer_fingerprint: Optional[Str] = None

    def __bool__(self) -> Bool:
        return self.trusted

    def covers(self, envelope: SignedEnvelope) -> Bool:
        return self.trusted and self.envelope is not None and self.envelope == envelope

    @property
    def reason(self) -> Str:
        return "trusted" if self.failure is None else str(self.failure)


class EnvelopeVerifier:
    """
    EnvelopeVerifier decides whether an envelope can be trusted. The structure is parsed, the algorithms are checked,
    the recorded digest is compared with the content, the signature is checked under the embedded certificate's key,
    and finally that key is compared with the pinned key. A certificate is never trusted just because the envelope
    carries it.

    There is no chain walk and no expiry check: an expired certificate that matches the pin still verifies.
    """

    @staticmethod
    def verify(envelope: Union[SignedEnvelope, Bytes], pinned: PublicKeyPin) -> TrustDecision:
        # The non-raising form; any failure becomes an untrusted decision.
        try:
            return EnvelopeVerifier.check(envelope, pinned)
        except VerificationError as error:
            logging.info(f"Envelope rejected: {error}")
            return TrustDecision(
                trusted=False,
                envelope=envelope if isinstance(envelope, SignedEnvelope) else None,
                failure=error)

    @staticmethod
    def check(envelope: Union[SignedEnvelope, Bytes], pinned: PublicKeyPin) -> TrustDecision:
        if not isinstance(envelope, SignedEnvelope):
            try:
                envelope = SignedEnvelope.from_der(envelope)
            except EncodingError as error:
                raise VerificationError(VerificationFailure.MALFORMED_STRUCTURE, str(error)) from error

        # Check the algorithms before touching the signature.
        try:
            signer_public_key = envelope.signer_certificate.public_key()
        except UnsupportedAlgorithm as error:
            raise VerificationError(VerificationFailure.UNSUPPORTED_ALGORITHM, str(error)) from error
        except (TypeError, ValueError) as error:
            raise VerificationError(VerificationFailure.MALFORMED_STRUCTURE, f"the signer key is unreadable: {error}") from error
        if not envelope.signature_algorithm.endswith("ecdsa"):
            raise VerificationError(VerificationFailure.UNSUPPORTED_ALGORITHM, envelope.signature_algorithm)
        if not isinstance(signer_public_key, EllipticCurvePublicKey):
            raise VerificationError(VerificationFailure.UNSUPPORTED_ALGORITHM, "the signer key is not an elliptic curve key")
        if envelope.digest_algorithm not in Hashing.ALGORITHMS:
            raise VerificationError(VerificationFailure.UNSUPPORTED_ALGORITHM, envelope.digest_algorithm)

        if envelope.content is None:
            raise VerificationError(VerificationFailure.MALFORMED_STRUCTURE, "the content is detached and was not supplied")

        # With signed attributes the signature covers the attributes, which in turn record the content digest.
        signed_bytes = envelope.content
        if envelope.signed_attributes is not None:
            if envelope.message_digest is None:
                raise VerificationError(VerificationFailure.MALFORMED_STRUCTURE, "the message digest attribute is missing")
            if envelope.signed_content_type != envelope.mode.value:
                raise VerificationError(VerificationFailure.MALFORMED_STRUCTURE, "the signed content type does not match")

            digest = Hashing.hash(envelope.content, envelope.digest_algorithm)
            if not bytes_eq(digest, envelope.message_digest):
                raise VerificationError(VerificationFailure.DIGEST_MISMATCH)
            signed_bytes = envelope.signed_attributes

        try:
            DigitalSigning.verify(signer_public_key, signed_bytes, envelope.signature_value, envelope.digest_algorithm)
        except InvalidSignature as error:
            raise VerificationError(VerificationFailure.SIGNATURE_MISMATCH) from error

        # Only now is the embedded certificate compared with the pin.
        if not Certificates.same_public_key(envelope.signer_certificate, pinned):
            raise VerificationError(VerificationFailure.UNTRUSTED_SIGNER)

        fingerprint = Certificates.fingerprint_text(envelope.signer_certificate)
        logging.debug(f"Envelope signed by {fingerprint} verified")
        return TrustDecision(trusted=True, envelope=envelope, signer_fingerprint=fingerprint)
