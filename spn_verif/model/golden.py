#!/usr/bin/env python3
"""
Golden Reference Model - Expected Responses for Accelerator Verification

Computes the expected (data_out, status) for any request with no state
machine and no latency. Written independently of the engine datapath in
cipher.py (word-level lookup tables, explicit bit P-box, byte-indexed key
schedule) so a bug in one path cannot cancel out in comparison.

    NOP        -> (0, NONE)
    ENCRYPT    -> (E(data, key), ENCRYPT_OK)
    DECRYPT    -> (D(data, key), DECRYPT_OK)
    UNDEFINED  -> (0, ERROR)

Usage:
    golden = GoldenModel()
    golden.predict(Request(Opcode.ENCRYPT, 0xABCD, 0x12345678))
    golden.encrypt_block(np.arange(65536), key)    # whole-codebook evaluation
"""

import numpy as np
from typing import Tuple

from ..protocol import Opcode, Status, Request, Response

# ============================================================================
# Configuration
# ============================================================================

NUM_WORDS = 1 << 16

S_BOX = np.array([0x3, 0x5, 0x6, 0xB, 0x0, 0xA, 0xC, 0xD,
                  0xF, 0x1, 0x9, 0x4, 0xE, 0x7, 0x8, 0x2], dtype=np.uint32)

# Output bit position of each input bit (rotate-left by 2)
P_BOX = np.array([(bit + 2) % 16 for bit in range(16)], dtype=np.uint32)

# Round r takes (high byte, low byte) from these key byte indices, byte 0 = key[7:0]
ROUND_KEY_BYTES = ((0, 2), (1, 0), (0, 3))

_OPCODE_STATUS = {
    Opcode.NOP: Status.NONE,
    Opcode.ENCRYPT: Status.ENCRYPT_OK,
    Opcode.DECRYPT: Status.DECRYPT_OK,
    Opcode.UNDEFINED: Status.ERROR,
}

# ============================================================================
# Lookup Table Construction
# ============================================================================

def _invert(table: np.ndarray) -> np.ndarray:
    inverse = np.zeros_like(table)
    inverse[table] = np.arange(len(table), dtype=table.dtype)
    return inverse


def _word_sbox(nibble_table: np.ndarray) -> np.ndarray:
    """Expand a 4-bit S-box into a 16-bit word substitution table"""
    words = np.arange(NUM_WORDS, dtype=np.uint32)
    out = np.zeros(NUM_WORDS, dtype=np.uint32)
    for shift in (0, 4, 8, 12):
        out |= nibble_table[(words >> shift) & 0xF] << shift
    return out


def _word_pbox(bit_map: np.ndarray) -> np.ndarray:
    """Build a 16-bit word permutation table from a bit mapping"""
    words = np.arange(NUM_WORDS, dtype=np.uint32)
    bits = (words[:, None] >> np.arange(16, dtype=np.uint32)) & 1
    return (bits << bit_map).sum(axis=1).astype(np.uint32)


def key_schedule(key: int) -> Tuple[int, int, int]:
    """Round keys by byte selection"""
    key_bytes = int(key).to_bytes(4, 'little')
    return tuple((key_bytes[hi] << 8) | key_bytes[lo] for hi, lo in ROUND_KEY_BYTES)


class GoldenModel:
    """Stateless reference predictor"""

    def __init__(self):
        self.sub = _word_sbox(S_BOX)
        self.inv_sub = _word_sbox(_invert(S_BOX))
        self.perm = _word_pbox(P_BOX)
        self.inv_perm = _invert(self.perm)

    # ------------------------------------------------------------------------
    # Block evaluation
    # ------------------------------------------------------------------------

    def encrypt_block(self, words, key: int) -> np.ndarray:
        """Encrypt an array of 16-bit words under one key"""
        k0, k1, k2 = key_schedule(key)
        d = np.asarray(words, dtype=np.uint32) & 0xFFFF
        d = self.perm[self.sub[d ^ k0]]
        d = self.perm[self.sub[d ^ k1]]
        return self.sub[d ^ k2]

    def decrypt_block(self, words, key: int) -> np.ndarray:
        """Decrypt an array of 16-bit words under one key"""
        k0, k1, k2 = key_schedule(key)
        d = np.asarray(words, dtype=np.uint32) & 0xFFFF
        d = self.inv_sub[d] ^ k2
        d = self.inv_sub[self.inv_perm[d]] ^ k1
        return self.inv_sub[self.inv_perm[d]] ^ k0

    # ------------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------------

    def predict(self, request: Request) -> Response:
        """Expected response for a single request"""
        status = _OPCODE_STATUS[request.opcode]
        if request.opcode == Opcode.ENCRYPT:
            data_out = int(self.encrypt_block([request.data], request.key)[0])
        elif request.opcode == Opcode.DECRYPT:
            data_out = int(self.decrypt_block([request.data], request.key)[0])
        else:
            data_out = 0
        return Response(data_out=data_out, status=status)

    def predict_batch(self, opcodes, data, keys) -> Tuple[np.ndarray, np.ndarray]:
        """Expected (data_out, status) arrays for parallel request arrays"""
        opcodes = np.asarray(opcodes, dtype=np.uint32)
        data = np.asarray(data, dtype=np.uint32)
        keys = np.asarray(keys, dtype=np.uint64)
        if not (opcodes.shape == data.shape == keys.shape):
            raise ValueError(f"Shape mismatch: {opcodes.shape}, {data.shape}, {keys.shape}")

        data_out = np.zeros(opcodes.shape, dtype=np.uint32)
        status = np.zeros(opcodes.shape, dtype=np.uint32)

        for op, st in _OPCODE_STATUS.items():
            status[opcodes == op] = st

        # Group by key so each key schedule is evaluated once
        for key in np.unique(keys):
            enc = (keys == key) & (opcodes == Opcode.ENCRYPT)
            dec = (keys == key) & (opcodes == Opcode.DECRYPT)
            if enc.any():
                data_out[enc] = self.encrypt_block(data[enc], int(key))
            if dec.any():
                data_out[dec] = self.decrypt_block(data[dec], int(key))

        return data_out, status
