from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from asn1crypto import pem

from contract_seal.errors import EncodingError, PersistenceError
from contract_seal.my_types import Bool, Bytes, Int, Optional, Str, Union

PathLike = Union[Str, Path]


class Persistence:
    """
    Persistence writes PEM blocks and raw envelopes to disk, and reads them back. Writes go through a temporary file in
    the target directory followed by a rename, so a reader never sees a half written file. Failures are fatal for the
    calling stage and are never retried.
    """

    PRIVATE_FILE_MODE = 0o600
    PUBLIC_FILE_MODE = 0o644

    @staticmethod
    def encode_block(label: Str, der: Bytes) -> Bytes:
        # Armor the DER bytes into a single PEM block with the given label.
        try:
            return pem.armor(label, der)
        except (TypeError, ValueError) as error:
            raise EncodingError(f"Could not encode {label} block: {error}") from error

    @staticmethod
    def decode_block(data: Bytes, label: Optional[Str] = None) -> Bytes:
        # Strip the PEM armor and return the DER bytes, checking the label when one is expected.
        try:
            found_label, _headers, der = pem.unarmor(data)
        except (TypeError, ValueError) as error:
            raise EncodingError(f"Could not decode PEM block: {error}") from error

        if label is not None and found_label != label:
            raise EncodingError(f"Expected a {label} block, found {found_label}")
        return der

    @staticmethod
    def write_block(path: PathLike, label: Str, der: Bytes, private: Bool = False) -> Path:
        # Encode the block and write it, keeping private key material readable by the owner only.
        block = Persistence.encode_block(label, der)
        mode = Persistence.PRIVATE_FILE_MODE if private else Persistence.PUBLIC_FILE_MODE
        return Persistence.write_bytes(path, block, mode=mode)

    @staticmethod
    def write_bytes(path: PathLike, data: Bytes, mode: Int = PUBLIC_FILE_MODE) -> Path:
        target = Path(path)
        temporary_name = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            file_descriptor, temporary_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
            with os.fdopen(file_descriptor, "wb") as temporary_file:
                temporary_file.write(data)
            os.chmod(temporary_name, mode)
            os.replace(temporary_name, target)
        except OSError as error:
            if temporary_name is not None and os.path.exists(temporary_name):
                os.unlink(temporary_name)
            raise PersistenceError(f"Could not write {target}: {error}") from error

        logging.debug(f"Wrote {len(data)} bytes to {target}")
        return target

    @staticmethod
    def read_file(path: PathLike) -> Bytes:
        target = Path(path)
        try:
            data = target.read_bytes()
        except OSError as error:
            raise PersistenceError(f"Could not read {target}: {error}") from error

        logging.debug(f"Read {len(data)} bytes from {target}")
        return data
