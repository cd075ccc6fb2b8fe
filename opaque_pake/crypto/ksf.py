"""Key-stretching functions applied to the OPRF output."""

from typing import Protocol

from argon2.low_level import Type, hash_secret_raw

from opaque_pake.common.config import get_argon2_params


class Ksf(Protocol):
    def stretch(self, data: bytes) -> bytes:
        ...


class IdentityKsf:
    """No extra stretching (the suite default)."""

    def stretch(self, data: bytes) -> bytes:
        return data


class Argon2idKsf:
    """Argon2id with a fixed all-zero salt; the OPRF output is already unique per user."""

    SALT = bytes(16)

    def __init__(self, time_cost: int = None, memory_cost: int = None, parallelism: int = None):
        params = get_argon2_params()
        self.time_cost = time_cost or params["time_cost"]
        self.memory_cost = memory_cost or params["memory_cost"]
        self.parallelism = parallelism or params["parallelism"]

    def stretch(self, data: bytes) -> bytes:
        return hash_secret_raw(
            data,
            self.SALT,
            time_cost=self.time_cost,
            memory_cost=self.memory_cost,
            parallelism=self.parallelism,
            hash_len=len(data),
            type=Type.ID,
        )
