"""
Exposes the public interface of the cache package.
"""
from .service import FactorizationCache
from .keys import FactorizationKey, create_factorization_key, matrix_fingerprint

__all__ = [
    "FactorizationCache",
    "FactorizationKey",
    "create_factorization_key",
    "matrix_fingerprint",
]
