import logging
from argparse import Namespace

from contract_seal.config import IdentityConfig, PipelineConfig
from contract_seal.crypto_engines.keys.key_pair import KeyPair
from contract_seal.envelope.signed_envelope import EnvelopeState
from contract_seal.envelope.verifier import EnvelopeVerifier
from contract_seal.errors import ContractSealError
from contract_seal.my_types import Int, Str
from contract_seal.setup.identity_setup import IdentitySetup
from contract_seal.setup.pipeline import EnvelopePipeline
from contract_seal.storage.persistence import Persistence


class CmdHandler:
    @staticmethod
    def handle(command: Str, arguments: Namespace) -> Int:
        # Dispatch to the handler for the command, turning any stage error into a message and exit code 1.
        try:
            return getattr(CmdHandler, f"_handle_{command}")(arguments)
        except ContractSealError as error:
            logging.error(f"{command} failed: {error}")
            print(f"Error: {error}")
            return 1

    @staticmethod
    def _handle_keygen(arguments: Namespace) -> Int:
        config = IdentityConfig.in_directory(
            arguments.directory,
            curve=arguments.curve,
            validity_days=arguments.validity_days,
            common_name=arguments.common_name)

        result = IdentitySetup(config).run()
        if not result.ok:
            print(f"Error: could not {result.failed_stage.value}: {result.error}")
            return 1

        print(f"Key pair and certificate written to {config.paths.private_key.parent}")
        print(f"Certificate fingerprint: {result.identity.fingerprint}")
        return 0

    @staticmethod
    def _handle_run(arguments: Namespace) -> Int:
        config = PipelineConfig.in_directory(
            arguments.directory,
            encrypt_payload=arguments.encrypt,
            timeout=arguments.timeout,
            interpreter=arguments.interpreter)

        report = EnvelopePipeline(config).run()
        if report.state is EnvelopeState.DISCARDED:
            print(f"Signature verification failed: {report.decision.reason}")
            return 0

        print("Signature verification succeeded")
        print(f"Signed contract saved to {report.envelope_path}")
        return 0

    @staticmethod
    def _handle_verify(arguments: Namespace) -> Int:
        config = PipelineConfig.in_directory(arguments.directory)
        pinned_public_key = KeyPair.load_public_key(Persistence.read_file(config.paths.public_key))
        envelope = Persistence.read_file(arguments.envelope)

        decision = EnvelopeVerifier.verify(envelope, pinned_public_key)
        if not decision.trusted:
            print(f"Signature verification failed: {decision.reason}")
            return 1

        print("Signature verification succeeded")
        print(f"Signer fingerprint: {decision.signer_fingerprint}")
        return 0
