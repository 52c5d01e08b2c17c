from __future__ import annotations

import logging

from contract_seal.crypto_engines.keys.identity import Identity
from contract_seal.envelope.enveloped_content import EnvelopedContent
from contract_seal.envelope.signed_envelope import EnvelopeMode, SignedEnvelope
from contract_seal.envelope.verifier import TrustDecision
from contract_seal.errors import UnwrapError
from contract_seal.my_types import Bytes, Optional


class EnvelopeUnwrapper:
    """
    EnvelopeUnwrapper releases the payload of an envelope, and only of an envelope that a trusted decision was made
    for. Embedded content is returned as it is; encrypted content is opened with the recipient identity.
    """

    @staticmethod
    def unwrap(envelope: SignedEnvelope, decision: TrustDecision, identity: Optional[Identity] = None) -> Bytes:
        # Gate on the decision first; nothing is decrypted for an untrusted envelope.
        if not decision.trusted:
            raise UnwrapError(f"The envelope is not trusted: {decision.reason}")
        if not decision.covers(envelope):
            raise UnwrapError("The trust decision was made for a different envelope")

        if envelope.content is None:
            raise UnwrapError("The envelope has no content to unwrap")

        if envelope.mode is EnvelopeMode.EMBEDDED:
            logging.debug(f"Unwrapped {len(envelope.content)} embedded bytes")
            return envelope.content

        if identity is None:
            raise UnwrapError("An identity is needed to open encrypted content")
        payload = EnvelopedContent.open(envelope.content, identity)
        logging.debug(f"Unwrapped {len(payload)} encrypted bytes")
        return payload
