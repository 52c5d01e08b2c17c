import pytest

from contract_seal.errors import EncodingError, PersistenceError
from contract_seal.storage.persistence import Persistence


def test_block_round_trip(tmp_path):
    path = Persistence.write_block(tmp_path / "block.pem", "CERTIFICATE", b"\x30\x00")
    assert path.read_bytes().startswith(b"-----BEGIN CERTIFICATE-----")
    assert Persistence.decode_block(Persistence.read_file(path), "CERTIFICATE") == b"\x30\x00"


def test_private_block_mode(tmp_path):
    path = Persistence.write_block(tmp_path / "secret.pem", "EC PRIVATE KEY", b"\x30\x00", private=True)
    assert path.stat().st_mode & 0o777 == 0o600


def test_wrong_label():
    block = Persistence.encode_block("PUBLIC KEY", b"\x30\x00")
    with pytest.raises(EncodingError):
        Persistence.decode_block(block, "CERTIFICATE")


def test_not_pem():
    with pytest.raises(EncodingError):
        Persistence.decode_block(b"plain text", "CERTIFICATE")


def test_write_bytes_overwrites(tmp_path):
    Persistence.write_bytes(tmp_path / "envelope.p7s", b"first")
    Persistence.write_bytes(tmp_path / "envelope.p7s", b"second")
    assert (tmp_path / "envelope.p7s").read_bytes() == b"second"

    # No temporary files are left behind.
    assert [entry.name for entry in tmp_path.iterdir()] == ["envelope.p7s"]


def test_read_missing_file(tmp_path):
    with pytest.raises(PersistenceError):
        Persistence.read_file(tmp_path / "missing.pem")


def test_write_into_a_file(tmp_path):
    (tmp_path / "not-a-directory").write_bytes(b"")
    with pytest.raises(PersistenceError):
        Persistence.write_bytes(tmp_path / "not-a-directory" / "envelope.p7s", b"data")
