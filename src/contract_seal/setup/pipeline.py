from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from contract_seal.config import PipelineConfig
from contract_seal.crypto_engines.keys.identity import Identity
from contract_seal.crypto_engines.keys.key_pair import KeyPair
from contract_seal.crypto_engines.tools.certificate import Certificates
from contract_seal.envelope.signed_envelope import EnvelopeState, SignedEnvelope
from contract_seal.envelope.signer import EnvelopeSigner
from contract_seal.envelope.unwrapper import EnvelopeUnwrapper
from contract_seal.envelope.verifier import EnvelopeVerifier, TrustDecision
from contract_seal.execution.gateway import ExecutionGateway
from contract_seal.my_types import Int, Optional
from contract_seal.storage.persistence import Persistence


@dataclass(kw_only=True)
class PipelineReport:
    state: EnvelopeState = EnvelopeState.CREATED
    envelope: Optional[SignedEnvelope] = None
    decision: Optional[TrustDecision] = None
    exit_status: Optional[Int] = None
    envelope_path: Optional[Path] = None


class EnvelopePipeline:
    """
    Runs one contract through the whole protocol: read the identity and the contract, sign, verify against the pinned
    public key, unwrap, execute and finally save the signed envelope.

    A failed verification is not an error. The envelope is discarded, nothing is unwrapped, executed or saved, and the
    report says why. Every other stage failure is raised to the caller as the stage's ContractSealError.
    """

    config: PipelineConfig

    def __init__(self, config: PipelineConfig) -> None:
        self.config = config

    def run(self) -> PipelineReport:
        report = PipelineReport()
        paths = self.config.paths

        # Read the inputs; a missing or malformed file ends the run.
        secret_key = KeyPair.load_secret_key(Persistence.read_file(paths.private_key))
        pinned_public_key = KeyPair.load_public_key(Persistence.read_file(paths.public_key))
        certificate = Certificates.load(Persistence.read_file(paths.certificate))
        contract = Persistence.read_file(self.config.contract)

        # The signer is also the recipient when the payload is encrypted.
        identity = Identity(key_pair=KeyPair(secret_key), certificate=certificate)
        recipient = certificate if self.config.encrypt_payload else None

        envelope = EnvelopeSigner.sign(
            contract, secret_key, certificate, recipient=recipient, digest_algorithm=self.config.digest_algorithm)
        report.envelope = envelope
        report.state = EnvelopeState.SIGNED

        decision = EnvelopeVerifier.verify(envelope, pinned_public_key)
        report.decision = decision
        if not decision.trusted:
            logging.error(f"Discarding the envelope: {decision.reason}")
            report.state = EnvelopeState.DISCARDED
            return report
        report.state = EnvelopeState.VERIFIED

        payload = EnvelopeUnwrapper.unwrap(envelope, decision, identity=identity)
        report.state = EnvelopeState.UNWRAPPED

        gateway = ExecutionGateway(interpreter=self.config.interpreter, timeout=self.config.timeout)
        report.exit_status = gateway.execute(payload)
        report.state = EnvelopeState.EXECUTED

        # Save the envelope exactly as it was signed.
        report.envelope_path = Persistence.write_bytes(self.config.signed_contract, envelope.to_der())
        logging.info(f"Signed contract saved to {report.envelope_path}")
        return report
