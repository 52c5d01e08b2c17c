from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from contract_seal.config import IdentityConfig
from contract_seal.crypto_engines.keys.identity import Identity, generate_identity, issue_self_signed_certificate
from contract_seal.crypto_engines.tools.certificate import Certificates
from contract_seal.crypto_engines.tools.timestamp import ValidityWindow
from contract_seal.errors import ContractSealError
from contract_seal.my_types import Bool, List, Optional


class IdentityStage(Enum):
    GENERATE_KEY = "generate key pair"
    WRITE_PRIVATE_KEY = "write private key"
    WRITE_PUBLIC_KEY = "write public key"
    ISSUE_CERTIFICATE = "issue certificate"
    WRITE_CERTIFICATE = "write certificate"


@dataclass(kw_only=True)
class IdentitySetupResult:
    identity: Optional[Identity] = None
    completed: List[IdentityStage] = field(default_factory=list)
    failed_stage: Optional[IdentityStage] = None
    error: Optional[ContractSealError] = None

    @property
    def ok(self) -> Bool:
        return self.error is None and self.identity is not None


class IdentitySetup:
    """
    Creates a new identity on disk: the private key, the public key and the self-signed certificate, in that order.
    The stages short-circuit, so a later stage never runs once an earlier one has failed, and a certificate is never
    written for a key that was not saved. Errors are logged and returned in the result rather than raised.
    """

    config: IdentityConfig

    def __init__(self, config: IdentityConfig) -> None:
        self.config = config

    def run(self) -> IdentitySetupResult:
        result = IdentitySetupResult()
        paths = self.config.paths
        stage = IdentityStage.GENERATE_KEY

        try:
            # Generate the key pair and save both halves.
            key_pair = generate_identity(self.config.curve)
            result.completed.append(stage)

            stage = IdentityStage.WRITE_PRIVATE_KEY
            key_pair.export_secret_key(paths.private_key)
            result.completed.append(stage)

            stage = IdentityStage.WRITE_PUBLIC_KEY
            key_pair.export_public_key(paths.public_key)
            result.completed.append(stage)

            # Issue the certificate for the saved key and save it too.
            stage = IdentityStage.ISSUE_CERTIFICATE
            certificate = issue_self_signed_certificate(
                key_pair,
                validity=ValidityWindow.starting_now(days=self.config.validity_days),
                common_name=self.config.common_name)
            result.completed.append(stage)

            stage = IdentityStage.WRITE_CERTIFICATE
            Certificates.export(certificate, paths.certificate)
            result.completed.append(stage)

        except ContractSealError as error:
            logging.error(f"Identity setup failed at '{stage.value}': {error}")
            result.failed_stage = stage
            result.error = error
            return result

        result.identity = Identity(key_pair=key_pair, certificate=certificate)
        logging.info(f"Identity written to {paths.private_key.parent}")
        return result
