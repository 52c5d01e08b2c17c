import sys

import pytest

from contract_seal.errors import ExecutionError
from contract_seal.execution.gateway import ExecutionGateway


def test_execute_prints(capfd):
    assert ExecutionGateway().execute(b'print("hello")') == 0
    assert capfd.readouterr().out == "hello\n"


def test_execute_non_zero_exit():
    with pytest.raises(ExecutionError) as error:
        ExecutionGateway().execute(b"import sys; sys.exit(3)")
    assert error.value.exit_status == 3


def test_execute_raising_contract(capfd):
    with pytest.raises(ExecutionError) as error:
        ExecutionGateway().execute(b"raise RuntimeError('broken contract')")
    assert error.value.exit_status == 1
    assert "broken contract" in capfd.readouterr().err


def test_execute_non_utf8():
    with pytest.raises(ExecutionError):
        ExecutionGateway().execute(b"\xff\xfe")


def test_execute_missing_interpreter(tmp_path):
    with pytest.raises(ExecutionError) as error:
        ExecutionGateway(interpreter=str(tmp_path / "no-such-python")).execute(b"pass")
    assert error.value.exit_status is None


def test_execute_timeout():
    with pytest.raises(ExecutionError):
        ExecutionGateway(interpreter=sys.executable, timeout=0.5).execute(b"import time; time.sleep(10)")
