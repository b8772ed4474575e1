#!/usr/bin/env python3
"""
Cycle-Accurate Crypto Engine Model

Matches the accelerator's request/response protocol tick for tick:

    IDLE --ENCRYPT/DECRYPT--> PROCESSING --> DONE --> IDLE
    IDLE --UNDEFINED--> ERROR --> IDLE

    tick 1: accept and latch request      (status NONE)
    tick 2: compute                       (status NONE)
    tick 3: present result for one tick   (status ENCRYPT_OK / DECRYPT_OK)

UNDEFINED drives status ERROR on the accepting tick and for one more tick.
Inputs are ignored outside IDLE, so only one request is ever in flight.
"""

from .cipher import encrypt, decrypt
from ..protocol import Opcode, Status, EngineState, Request, DATA_MASK


class CryptoEngine:
    """Cycle-accurate crypto accelerator with registered outputs."""

    ACCEPT_LATENCY = 3  # Ticks from accept to result, inclusive

    def __init__(self, verbose: bool = False, output_fault_mask: int = 0,
                 hang: bool = False):
        """
        Args:
            verbose: Print a trace line for every tick
            output_fault_mask: Bits flipped in data_out when a result is presented
            hang: Never leave PROCESSING (models a stuck engine)
        """
        self.verbose = verbose
        self.output_fault_mask = output_fault_mask & DATA_MASK
        self.hang = hang
        self.cycle = 0
        self.reset()

    def reset(self):
        # State
        self.state = EngineState.IDLE

        # Latched request and result
        self.latched: Request = None
        self.result = 0

        # Registered outputs
        self.data_out = 0
        self.status = Status.NONE

        self.stats = {
            'encrypts': 0,
            'decrypts': 0,
            'errors': 0,
        }

    def log(self, msg: str):
        if self.verbose:
            print(f"[ENG @{self.cycle:3d}] {self.state.name:10s} | {msg}")

    @property
    def busy(self) -> bool:
        return self.state != EngineState.IDLE

    def posedge(self, reset: bool = False, opcode: int = Opcode.NOP,
                data_in: int = 0, secret_key: int = 0):
        """Execute one clock tick with the inputs sampled at this edge."""
        self.cycle += 1

        if reset:
            self.state = EngineState.IDLE
            self.latched = None
            self.result = 0
            self.data_out = 0
            self.status = Status.NONE
            return

        if self.state == EngineState.IDLE:
            self.data_out = 0
            self.status = Status.NONE
            opcode = Opcode(opcode)

            if opcode in (Opcode.ENCRYPT, Opcode.DECRYPT):
                self.latched = Request(opcode, data_in, secret_key)
                self.log(f"ACCEPT {self.latched}")
                self.state = EngineState.PROCESSING

            elif opcode == Opcode.UNDEFINED:
                self.status = Status.ERROR
                self.stats['errors'] += 1
                self.log("UNDEFINED opcode")
                self.state = EngineState.ERROR

        elif self.state == EngineState.PROCESSING:
            if self.hang:
                self.log("stalled")
                return
            req = self.latched
            if req.opcode == Opcode.ENCRYPT:
                self.result = encrypt(req.data, req.key)
            else:
                self.result = decrypt(req.data, req.key)
            self.log(f"computed 0x{self.result:04X}")
            self.state = EngineState.DONE

        elif self.state == EngineState.DONE:
            self.data_out = (self.result ^ self.output_fault_mask) & DATA_MASK
            if self.latched.opcode == Opcode.ENCRYPT:
                self.status = Status.ENCRYPT_OK
                self.stats['encrypts'] += 1
            else:
                self.status = Status.DECRYPT_OK
                self.stats['decrypts'] += 1
            self.log(f"RESULT 0x{self.data_out:04X} {self.status.name}")
            self.state = EngineState.IDLE

        elif self.state == EngineState.ERROR:
            self.data_out = 0
            self.status = Status.ERROR
            self.state = EngineState.IDLE
