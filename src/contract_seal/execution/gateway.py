from __future__ import annotations

import logging
import subprocess
import sys

from contract_seal.errors import ExecutionError
from contract_seal.my_types import Bytes, Float, Int, Str


class ExecutionGateway:
    """
    The execution gateway hands an unwrapped payload to a Python interpreter as `<interpreter> -c <source>`. The child
    inherits stdout and stderr, so whatever the contract prints goes straight to the terminal. There is no sandbox;
    only payloads from a trusted envelope should reach this point.
    """

    DEFAULT_INTERPRETER = sys.executable or "python3"
    DEFAULT_TIMEOUT = 30.0

    interpreter: Str
    timeout: Float

    def __init__(self, interpreter: Str = DEFAULT_INTERPRETER, timeout: Float = DEFAULT_TIMEOUT) -> None:
        self.interpreter = interpreter
        self.timeout = timeout

    def execute(self, payload: Bytes) -> Int:
        try:
            source = payload.decode("utf-8")
        except UnicodeDecodeError as error:
            raise ExecutionError(f"The payload is not UTF-8 source: {error}") from error

        # Run the source and wait for it, inheriting the standard streams.
        logging.debug(f"Executing {len(payload)} bytes with {self.interpreter}")
        try:
            completed = subprocess.run([self.interpreter, "-c", source], timeout=self.timeout, check=False)
        except subprocess.TimeoutExpired as error:
            raise ExecutionError(f"The payload did not finish within {self.timeout} seconds") from error
        except (OSError, ValueError) as error:
            raise ExecutionError(f"Could not launch {self.interpreter}: {error}") from error

        if completed.returncode != 0:
            raise ExecutionError(f"The payload exited with status {completed.returncode}", exit_status=completed.returncode)
        return 0
