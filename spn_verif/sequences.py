"""
Stimulus Sequences for the Crypto Accelerator

Directed and randomized request streams:
1. basic      - one of each opcode with fixed operands
2. paired     - ENCRYPT then DECRYPT of the same (data, key), twice
3. random     - weighted random opcodes (ENCRYPT/DECRYPT 40, NOP/UNDEFINED 10)
4. edge       - all-zero, all-one and mid-boundary operands, plus a round trip
5. corner     - alternating bits against a complementary key, single-bit operands

Every Request validates its operands on construction, so a malformed
stream fails while it is being generated.
"""

import random
from typing import Callable, Dict, List, Optional

from .config import TestbenchConfig
from .protocol import Opcode, Request, DATA_MASK, KEY_MASK

#==============================================================================
# Configuration
#==============================================================================

RANDOM_WEIGHTS = {
    Opcode.ENCRYPT: 40,
    Opcode.DECRYPT: 40,
    Opcode.NOP: 10,
    Opcode.UNDEFINED: 10,
}

#==============================================================================
# Directed Sequences
#==============================================================================

def basic_sequence() -> List[Request]:
    """One ENCRYPT, DECRYPT, NOP and UNDEFINED"""
    return [
        Request(Opcode.ENCRYPT, 0xABCD, 0x12345678),
        Request(Opcode.DECRYPT, 0x1234, 0x12345678),
        Request(Opcode.NOP),
        Request(Opcode.UNDEFINED, 0xFFFF, 0xFFFFFFFF),
    ]


def paired_sequence() -> List[Request]:
    """ENCRYPT then DECRYPT on the same operands"""
    pairs = [
        (0x1234, 0xDEADBEEF),
        (0xCAFE, 0x0BADF00D),
    ]
    requests = []
    for data, key in pairs:
        requests.append(Request(Opcode.ENCRYPT, data, key))
        requests.append(Request(Opcode.DECRYPT, data, key))
    return requests


def edge_sequence() -> List[Request]:
    """Boundary operands"""
    requests = []
    for data, key in [(0x0000, 0x00000000),
                      (DATA_MASK, KEY_MASK),
                      (0x8000, 0x80000000)]:
        requests.append(Request(Opcode.ENCRYPT, data, key))
        requests.append(Request(Opcode.DECRYPT, data, key))

    # Round trip: decrypt the ciphertext of 0xABCD
    requests.append(Request(Opcode.ENCRYPT, 0xABCD, 0x12345678))
    requests.append(Request(Opcode.DECRYPT, 0xAEF2, 0x12345678))
    return requests


def corner_sequence() -> List[Request]:
    """Alternating and single-bit patterns"""
    requests = []
    for data, key in [(0xAAAA, 0x55555555),
                      (0x5555, 0xAAAAAAAA),
                      (0x0001, 0x00000001),
                      (0x8000, 0x80000000)]:
        requests.append(Request(Opcode.ENCRYPT, data, key))
        requests.append(Request(Opcode.DECRYPT, data, key))
    return requests

#==============================================================================
# Random Sequence
#==============================================================================

def random_sequence(count: int = 30, seed: Optional[int] = None,
                    rng: Optional[random.Random] = None) -> List[Request]:
    """
    Weighted random requests

    Args:
        count: Number of requests
        seed: Seed for a private RNG (ignored when rng is given)
        rng: RNG to draw from

    ENCRYPT/DECRYPT operands are never zero; NOP/UNDEFINED operands are
    unconstrained since the engine ignores them.
    """
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    if rng is None:
        rng = random.Random(seed)

    opcodes = rng.choices(list(RANDOM_WEIGHTS), weights=list(RANDOM_WEIGHTS.values()), k=count)

    requests = []
    for opcode in opcodes:
        if opcode in (Opcode.ENCRYPT, Opcode.DECRYPT):
            data = rng.randint(1, DATA_MASK)
            key = rng.randint(1, KEY_MASK)
        else:
            data = rng.randint(0, DATA_MASK)
            key = rng.randint(0, KEY_MASK)
        requests.append(Request(opcode, data, key))
    return requests

#==============================================================================
# Registry
#==============================================================================

SEQUENCES: Dict[str, Callable[..., List[Request]]] = {
    'basic': basic_sequence,
    'paired': paired_sequence,
    'random': random_sequence,
    'edge': edge_sequence,
    'corner': corner_sequence,
}


def get_sequence(name: str, config: TestbenchConfig = None) -> List[Request]:
    """Build a named sequence"""
    if name not in SEQUENCES:
        raise KeyError(f"Unknown sequence '{name}', known: {', '.join(sorted(SEQUENCES))}")
    if name == 'random':
        config = config or TestbenchConfig()
        return random_sequence(count=config.random_count, seed=config.seed)
    return SEQUENCES[name]()
