from __future__ import annotations

from enum import Enum

from contract_seal.my_types import Optional


class ContractSealError(Exception):
    """
    Base class for every error raised by the signing, verification and execution stages. Each stage error is terminal
    for the run that raised it; nothing is retried.
    """


class KeyGenerationError(ContractSealError):
    pass


class CertificateConstructionError(ContractSealError):
    pass


class EncodingError(ContractSealError):
    pass


class PersistenceError(ContractSealError):
    pass


class SigningError(ContractSealError):
    pass


class VerificationFailure(Enum):
    MALFORMED_STRUCTURE = "malformed envelope structure"
    UNTRUSTED_SIGNER = "signer certificate does not match the pinned key"
    UNSUPPORTED_ALGORITHM = "unsupported algorithm"
    DIGEST_MISMATCH = "payload digest mismatch"
    SIGNATURE_MISMATCH = "signature mismatch"


class VerificationError(ContractSealError):
    kind: VerificationFailure

    def __init__(self, kind: VerificationFailure, detail: Optional[str] = None) -> None:
        # Keep the failure kind so callers can branch on it, and build a readable message.
        self.kind = kind
        message = kind.value if not detail else f"{kind.value}: {detail}"
        super().__init__(message)


class UnwrapError(ContractSealError):
    pass


class ExecutionError(ContractSealError):
    exit_status: Optional[int]

    def __init__(self, message: str, exit_status: Optional[int] = None) -> None:
        self.exit_status = exit_status
        super().__init__(message)
