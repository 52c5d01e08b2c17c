import os

from contract_seal.my_types import Bytes, Int


class Random:
    GENERATOR = os.urandom

    @staticmethod
    def random_bytes(length: Int) -> Bytes:
        return Random.GENERATOR(length)
