from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path

from contract_seal.crypto_engines.crypto.digital_signing import DigitalSigning
from contract_seal.crypto_engines.keys.identity import DEFAULT_COMMON_NAME
from contract_seal.execution.gateway import ExecutionGateway
from contract_seal.my_types import Bool, Float, Int, Optional, Str
from contract_seal.storage.persistence import PathLike


@dataclass(kw_only=True, frozen=True)
class IdentityPaths:
    """
    Where an identity lives on disk. Nothing is global, so several identities can sit side by side.
    """

    private_key: Path
    public_key: Path
    certificate: Path

    @staticmethod
    def in_directory(directory: PathLike = ".") -> IdentityPaths:
        directory = Path(directory)
        return IdentityPaths(
            private_key=directory / "private_key.pem",
            public_key=directory / "public_key.pem",
            certificate=directory / "certificate.crt")


@dataclass(kw_only=True, frozen=True)
class IdentityConfig:
    paths: IdentityPaths = field(default_factory=IdentityPaths.in_directory)
    curve: Str = DigitalSigning.DEFAULT_CURVE
    validity_days: Int = 365
    common_name: Str = DEFAULT_COMMON_NAME

    @staticmethod
    def in_directory(directory: PathLike = ".", **overrides) -> IdentityConfig:
        return replace(IdentityConfig(paths=IdentityPaths.in_directory(directory)), **overrides)


@dataclass(kw_only=True, frozen=True)
class PipelineConfig:
    paths: IdentityPaths = field(default_factory=IdentityPaths.in_directory)
    contract: Path = Path("contract.py")
    signed_contract: Path = Path("signed_contract.p7s")
    digest_algorithm: Optional[Str] = None
    encrypt_payload: Bool = False
    interpreter: Str = ExecutionGateway.DEFAULT_INTERPRETER
    timeout: Float = ExecutionGateway.DEFAULT_TIMEOUT

    @staticmethod
    def in_directory(directory: PathLike = ".", **overrides) -> PipelineConfig:
        directory = Path(directory)
        config = PipelineConfig(
            paths=IdentityPaths.in_directory(directory),
            contract=directory / "contract.py",
            signed_contract=directory / "signed_contract.p7s")
        return replace(config, **overrides)
