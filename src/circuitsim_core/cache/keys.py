# src/circuitsim_core/cache/keys.py
"""
Centralizes the logic for generating factorization cache keys.

A cached LU factorization may only be reused when the matrix it was computed
from is identical to the one being solved. Everything that can change the
matrix is therefore folded into the key: system dimensions, time step,
gmin, the switch-forced integration mode, and a digest of the matrix bytes
themselves.
"""
import hashlib
from typing import NamedTuple

import numpy as np


class FactorizationKey(NamedTuple):
    node_count: int
    aux_count: int
    dt: float
    gmin: float
    switch_connected: bool
    matrix_digest: str


def matrix_fingerprint(matrix: np.ndarray) -> str:
    """
    A structural hash of the dense matrix: its shape plus its raw float64 bytes.
    Two matrices share a fingerprint only if they are bitwise equal.
    """
    data = np.ascontiguousarray(matrix, dtype=np.float64)
    digest = hashlib.blake2b(digest_size=16)
    digest.update(np.asarray(data.shape, dtype=np.int64).tobytes())
    digest.update(data.tobytes())
    return digest.hexdigest()


def create_factorization_key(
    matrix: np.ndarray,
    node_count: int,
    aux_count: int,
    dt: float,
    gmin: float,
    switch_connected: bool,
) -> FactorizationKey:
    """
    Creates the cache key for the LU factorization of `matrix`.

    The dimensions and solver settings are kept as separate fields so that a
    key is readable in logs; the digest alone already decides equality of
    the numerical content.
    """
    return FactorizationKey(
        node_count=int(node_count),
        aux_count=int(aux_count),
        dt=float(dt),
        gmin=float(gmin),
        switch_connected=bool(switch_connected),
        matrix_digest=matrix_fingerprint(matrix),
    )
