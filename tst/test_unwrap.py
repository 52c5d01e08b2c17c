import pytest

from contract_seal.crypto_engines.keys.identity import Identity
from contract_seal.envelope.enveloped_content import EnvelopedContent
from contract_seal.envelope.signed_envelope import EnvelopeMode
from contract_seal.envelope.signer import EnvelopeSigner
from contract_seal.envelope.unwrapper import EnvelopeUnwrapper
from contract_seal.envelope.verifier import EnvelopeVerifier, TrustDecision
from contract_seal.errors import SigningError, UnwrapError

PAYLOAD = b'print("unwrapped")\n'


def test_unwrap_embedded(identity):
    envelope = EnvelopeSigner.sign(PAYLOAD, identity.key_pair.secret_key, identity.certificate)
    decision = EnvelopeVerifier.verify(envelope, identity.certificate)
    assert EnvelopeUnwrapper.unwrap(envelope, decision) == PAYLOAD


def test_unwrap_needs_trust(identity, other_identity):
    envelope = EnvelopeSigner.sign(PAYLOAD, identity.key_pair.secret_key, identity.certificate)
    decision = EnvelopeVerifier.verify(envelope, other_identity.certificate)

    with pytest.raises(UnwrapError):
        EnvelopeUnwrapper.unwrap(envelope, decision)
    with pytest.raises(UnwrapError):
        EnvelopeUnwrapper.unwrap(envelope, TrustDecision(trusted=False))


def test_decision_is_bound_to_its_envelope(identity):
    first = EnvelopeSigner.sign(PAYLOAD, identity.key_pair.secret_key, identity.certificate)
    second = EnvelopeSigner.sign(b"print('other')", identity.key_pair.secret_key, identity.certificate)
    decision = EnvelopeVerifier.verify(first, identity.certificate)

    assert decision.covers(first) and not decision.covers(second)
    with pytest.raises(UnwrapError):
        EnvelopeUnwrapper.unwrap(second, decision)


def test_unwrap_encrypted(identity):
    envelope = EnvelopeSigner.sign(PAYLOAD, identity.key_pair.secret_key, identity.certificate, recipient=identity.certificate)
    assert envelope.mode is EnvelopeMode.ENCRYPTED
    assert envelope.payload is None
    assert PAYLOAD not in envelope.to_der()

    decision = EnvelopeVerifier.verify(envelope, identity.certificate)
    assert decision.trusted
    assert EnvelopeUnwrapper.unwrap(envelope, decision, identity=identity) == PAYLOAD


def test_unwrap_encrypted_for_another_recipient(identity, other_identity):
    envelope = EnvelopeSigner.sign(PAYLOAD, identity.key_pair.secret_key, identity.certificate, recipient=other_identity.certificate)
    decision = EnvelopeVerifier.verify(envelope, identity.certificate)

    # Only the recipient can open it, and the signer's identity is not the recipient.
    assert EnvelopeUnwrapper.unwrap(envelope, decision, identity=other_identity) == PAYLOAD
    with pytest.raises(UnwrapError):
        EnvelopeUnwrapper.unwrap(envelope, decision, identity=identity)
    with pytest.raises(UnwrapError):
        EnvelopeUnwrapper.unwrap(envelope, decision)


def test_open_with_the_wrong_key(identity, other_identity):
    sealed = EnvelopedContent.seal(PAYLOAD, identity.certificate)
    impostor = Identity(key_pair=other_identity.key_pair, certificate=identity.certificate)

    with pytest.raises(UnwrapError):
        EnvelopedContent.open(sealed, impostor)
    with pytest.raises(UnwrapError):
        EnvelopedContent.open(b"\x00garbage", identity)


def test_encrypted_detached_is_rejected(identity):
    with pytest.raises(SigningError):
        EnvelopeSigner.sign(PAYLOAD, identity.key_pair.secret_key, identity.certificate, recipient=identity.certificate, detached=True)
