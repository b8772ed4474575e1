#!/usr/bin/env python3
"""
SPN Cipher Datapath

Bit-exact model of the accelerator's substitution-permutation network:
16-bit block, 32-bit key, 3 rounds.

    round r:  d ^= K[r]  ->  S-box on each nibble  ->  rotl(d, 2)   (no rotate after round 2)

Round keys are byte selections of the 32-bit key:
    K[0] = key[7:0] : key[23:16]
    K[1] = key[15:0]
    K[2] = key[7:0] : key[31:24]

Illustrative only, NOT a secure cipher.
"""

from typing import Tuple

BLOCK_BITS = 16
BLOCK_MASK = 0xFFFF
NIBBLES = BLOCK_BITS // 4
NUM_ROUNDS = 3
ROTATE = 2

SBOX = (0x3, 0x5, 0x6, 0xB, 0x0, 0xA, 0xC, 0xD,
        0xF, 0x1, 0x9, 0x4, 0xE, 0x7, 0x8, 0x2)

INV_SBOX = (0x4, 0x9, 0xF, 0x0, 0xB, 0x1, 0x2, 0xD,
            0xE, 0xA, 0x5, 0x3, 0x6, 0x7, 0xC, 0x8)


#==============================================================================
# Key Schedule
#==============================================================================

def round_key(key: int, rnd: int) -> int:
    """16-bit round key for round 0, 1 or 2"""
    key_lo = key & 0xFF
    if rnd == 0:
        return (key_lo << 8) | ((key >> 16) & 0xFF)
    elif rnd == 1:
        return key & 0xFFFF
    elif rnd == 2:
        return (key_lo << 8) | ((key >> 24) & 0xFF)
    raise ValueError(f"Invalid round: {rnd}")


def round_keys(key: int) -> Tuple[int, int, int]:
    """All three round keys, recomputed for every request"""
    return tuple(round_key(key, r) for r in range(NUM_ROUNDS))


#==============================================================================
# Substitution / Permutation Layers
#==============================================================================

def _sub_nibbles(word: int, table) -> int:
    result = 0
    # MSB nibble first
    for i in reversed(range(NIBBLES)):
        nibble = (word >> (4 * i)) & 0xF
        result |= table[nibble] << (4 * i)
    return result


def substitute(word: int) -> int:
    """Forward S-box on all four nibbles"""
    return _sub_nibbles(word, SBOX)


def inv_substitute(word: int) -> int:
    """Inverse S-box on all four nibbles"""
    return _sub_nibbles(word, INV_SBOX)


def permute(word: int) -> int:
    """P-box: rotate left by 2"""
    return ((word << ROTATE) | (word >> (BLOCK_BITS - ROTATE))) & BLOCK_MASK


def inv_permute(word: int) -> int:
    """Inverse P-box: rotate right by 2"""
    return ((word >> ROTATE) | (word << (BLOCK_BITS - ROTATE))) & BLOCK_MASK


#==============================================================================
# Rounds
#==============================================================================

def forward_round(word: int, key: int, rnd: int) -> int:
    """Key mix, substitute, then permute except on the final round"""
    word = substitute(word ^ round_key(key, rnd))
    if rnd != NUM_ROUNDS - 1:
        word = permute(word)
    return word


def inverse_round(word: int, key: int, rnd: int) -> int:
    """Undo forward_round for the same round index"""
    if rnd != NUM_ROUNDS - 1:
        word = inv_permute(word)
    return inv_substitute(word) ^ round_key(key, rnd)


def encrypt(plaintext: int, key: int) -> int:
    word = plaintext & BLOCK_MASK
    for rnd in range(NUM_ROUNDS):
        word = forward_round(word, key, rnd)
    return word


def decrypt(ciphertext: int, key: int) -> int:
    word = ciphertext & BLOCK_MASK
    for rnd in reversed(range(NUM_ROUNDS)):
        word = inverse_round(word, key, rnd)
    return word
