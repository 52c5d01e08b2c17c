import pytest

from contract_seal.config import IdentityConfig, PipelineConfig
from contract_seal.crypto_engines.keys.identity import Identity, generate_identity, issue_self_signed_certificate
from contract_seal.setup.identity_setup import IdentitySetup


@pytest.fixture
def identity() -> Identity:
    key_pair = generate_identity()
    return Identity(key_pair=key_pair, certificate=issue_self_signed_certificate(key_pair))


@pytest.fixture
def other_identity() -> Identity:
    key_pair = generate_identity()
    return Identity(key_pair=key_pair, certificate=issue_self_signed_certificate(key_pair, common_name="someone-else"))


@pytest.fixture
def identity_directory(tmp_path):
    # A directory holding private_key.pem, public_key.pem and certificate.crt.
    result = IdentitySetup(IdentityConfig.in_directory(tmp_path)).run()
    assert result.ok
    return tmp_path


@pytest.fixture
def pipeline_config(identity_directory) -> PipelineConfig:
    (identity_directory / "contract.py").write_text('print("hello from the contract")\n')
    return PipelineConfig.in_directory(identity_directory)
