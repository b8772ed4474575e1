"""
Crypto Accelerator Protocol Definitions

Signal encodings and transaction records shared by the engine model,
the golden model and the bus functional models.

    Signal       Dir   Width
    reset        in    1      active-high
    opcode       in    2      00=NOP, 01=ENCRYPT, 10=DECRYPT, 11=UNDEFINED
    data_in      in    16
    secret_key   in    32
    data_out     out   16     0 unless status != NONE
    status       out   2      00=NONE, 01=ENCRYPT_OK, 10=DECRYPT_OK, 11=ERROR
"""

import numbers
from dataclasses import dataclass
from enum import IntEnum


DATA_WIDTH = 16
KEY_WIDTH = 32
DATA_MASK = (1 << DATA_WIDTH) - 1
KEY_MASK = (1 << KEY_WIDTH) - 1


class Opcode(IntEnum):
    """Request opcodes (2-bit)"""
    NOP = 0b00
    ENCRYPT = 0b01
    DECRYPT = 0b10
    UNDEFINED = 0b11


class Status(IntEnum):
    """Response status (2-bit)"""
    NONE = 0b00
    ENCRYPT_OK = 0b01
    DECRYPT_OK = 0b10
    ERROR = 0b11


class EngineState(IntEnum):
    """Accelerator state machine states"""
    IDLE = 0
    PROCESSING = 1
    DONE = 2
    ERROR = 3


@dataclass(frozen=True)
class Request:
    """Single request presented on the input side of the protocol"""
    opcode: Opcode
    data: int = 0
    key: int = 0

    def __post_init__(self):
        for name in ('opcode', 'data', 'key'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if not isinstance(value, Opcode):
                object.__setattr__(self, name, int(value))

        if not isinstance(self.opcode, Opcode):
            try:
                object.__setattr__(self, 'opcode', Opcode(self.opcode))
            except ValueError:
                raise ValueError(f"Invalid opcode: {self.opcode!r}") from None
        if not 0 <= self.data <= DATA_MASK:
            raise ValueError(f"data out of range for {DATA_WIDTH} bits: {self.data:#x}")
        if not 0 <= self.key <= KEY_MASK:
            raise ValueError(f"key out of range for {KEY_WIDTH} bits: {self.key:#x}")

    def __str__(self):
        return f"{self.opcode.name}(data=0x{self.data:04X}, key=0x{self.key:08X})"


@dataclass(frozen=True)
class Response:
    """Observed or predicted output of the protocol"""
    data_out: int = 0
    status: Status = Status.NONE

    def __str__(self):
        return f"{self.status.name}(data_out=0x{self.data_out:04X})"


@dataclass(frozen=True)
class Transaction:
    """A request paired with the response observed for it"""
    request: Request
    response: Response
    timed_out: bool = False

    # Timing info (for analysis)
    start_cycle: int = 0
    end_cycle: int = 0

    @property
    def latency(self) -> int:
        return self.end_cycle - self.start_cycle
