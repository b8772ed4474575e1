"""
Accelerator Models

Cycle-accurate engine model, its SPN datapath, and the independent
golden reference model used for prediction.
"""

from .cipher import (
    SBOX,
    INV_SBOX,
    round_key,
    round_keys,
    substitute,
    inv_substitute,
    permute,
    inv_permute,
    forward_round,
    inverse_round,
    encrypt,
    decrypt
)
from .engine_model import CryptoEngine
from .golden import GoldenModel, key_schedule

__all__ = [
    'SBOX',
    'INV_SBOX',
    'round_key',
    'round_keys',
    'substitute',
    'inv_substitute',
    'permute',
    'inv_permute',
    'forward_round',
    'inverse_round',
    'encrypt',
    'decrypt',
    'CryptoEngine',
    'GoldenModel',
    'key_schedule'
]
