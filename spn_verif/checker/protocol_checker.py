"""
Crypto Protocol Checker

Passively checks the accelerator's output protocol on every tick:
status/data_out consistency, response latency, one request in flight,
and ERROR only in answer to an UNDEFINED opcode.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Tuple

from ..protocol import Opcode, Status
from ..sim import RisingEdge, start_soon


class ViolationType(Enum):
    """Types of protocol violations"""
    # Output signal violations
    DATA_WITHOUT_STATUS = auto()
    STATUS_HELD = auto()

    # Response violations
    SPURIOUS_STATUS = auto()
    STATUS_OPCODE_MISMATCH = auto()
    LATENCY_MISMATCH = auto()
    NO_RESPONSE = auto()
    SPURIOUS_ERROR = auto()

    # Ordering violations
    OVERLAPPING_REQUEST = auto()


@dataclass
class Violation:
    """Represents a single protocol violation"""
    type: ViolationType
    cycle: int
    message: str
    severity: str = "ERROR"  # ERROR, WARNING, INFO


_EXPECTED_STATUS = {
    Opcode.ENCRYPT: Status.ENCRYPT_OK,
    Opcode.DECRYPT: Status.DECRYPT_OK,
}


class ProtocolChecker:
    """
    Crypto Protocol Compliance Checker

    Monitors bus signals and reports protocol violations.
    """

    def __init__(self, bus, clock, name: str = "crypto",
                 latency: int = 3, timeout_ticks: int = 20,
                 strict_mode: bool = False):
        """
        Initialize protocol checker

        Args:
            bus: ProtocolBus to observe
            clock: Tick source
            name: Checker name (for logging)
            latency: Ticks from accept to result, inclusive
            timeout_ticks: Ticks after which an outstanding request is abandoned
            strict_mode: If True, treat warnings as errors
        """
        self.bus = bus
        self.clock = clock
        self.name = name
        self.latency = latency
        self.timeout_ticks = timeout_ticks
        self.strict_mode = strict_mode

        # Violation log
        self.violations: List[Violation] = []

        # State tracking
        self._pending: Optional[Tuple[Opcode, int]] = None
        self._last_undefined: Optional[int] = None
        self._prev_status = Status.NONE

        self._running = False
        self._task = None

        # Logger
        self.log = logging.getLogger(f"ProtocolChecker.{name}")

    async def start(self):
        """Start protocol checking"""
        self._running = True
        self.violations = []
        self._task = start_soon(self._check())
        self.log.info("Protocol checker started")
        return self._task

    def stop(self):
        """Stop protocol checking"""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.log.info(f"Protocol checker stopped. {len(self.violations)} violations found.")

    def _record_violation(self, vtype: ViolationType, message: str,
                          severity: str = "ERROR"):
        """Record a protocol violation"""
        v = Violation(
            type=vtype,
            cycle=self.clock.cycle,
            message=message,
            severity=severity
        )
        self.violations.append(v)

        if severity == "ERROR":
            self.log.error(f"[{v.cycle}] {message}")
        elif severity == "WARNING":
            self.log.warning(f"[{v.cycle}] {message}")
        else:
            self.log.info(f"[{v.cycle}] {message}")

    def _clear(self):
        self._pending = None
        self._last_undefined = None
        self._prev_status = Status.NONE

    async def _check(self):
        while self._running:
            await RisingEdge(self.clock)
            self.sample()

    def sample(self):
        """Apply every rule to the current edge"""
        bus = self.bus
        cycle = self.clock.cycle

        if bus.sampled.reset:
            self._clear()
            return

        opcode = bus.sampled.opcode
        if opcode == Opcode.UNDEFINED:
            self._last_undefined = cycle

        # Abandon a request the engine never answered
        if self._pending is not None and cycle - self._pending[1] >= self.timeout_ticks:
            self._record_violation(
                ViolationType.NO_RESPONSE,
                f"{self._pending[0].name} accepted at cycle {self._pending[1]} never completed"
            )
            self._pending = None

        # Rule: one request in flight
        if bus.pulse_start and opcode in _EXPECTED_STATUS:
            if self._pending is not None:
                self._record_violation(
                    ViolationType.OVERLAPPING_REQUEST,
                    f"{opcode.name} issued while {self._pending[0].name} "
                    f"from cycle {self._pending[1]} is outstanding"
                )
            else:
                self._pending = (opcode, cycle)

        status = bus.status
        data_out = bus.data_out

        # Rule: data_out is zero unless a status is presented
        if status == Status.NONE and data_out != 0:
            self._record_violation(
                ViolationType.DATA_WITHOUT_STATUS,
                f"data_out=0x{data_out:04X} while status is NONE"
            )

        if status in (Status.ENCRYPT_OK, Status.DECRYPT_OK):
            # Rule: result is presented for exactly one tick
            if status == self._prev_status:
                self._record_violation(
                    ViolationType.STATUS_HELD,
                    f"{status.name} asserted on consecutive ticks"
                )
            elif self._pending is None:
                self._record_violation(
                    ViolationType.SPURIOUS_STATUS,
                    f"{status.name} with no request outstanding"
                )
            else:
                pending_op, accepted = self._pending
                if status != _EXPECTED_STATUS[pending_op]:
                    self._record_violation(
                        ViolationType.STATUS_OPCODE_MISMATCH,
                        f"{status.name} answering {pending_op.name}"
                    )
                observed = cycle - accepted + 1
                if observed != self.latency:
                    self._record_violation(
                        ViolationType.LATENCY_MISMATCH,
                        f"response after {observed} ticks, expected {self.latency}",
                        severity="WARNING"
                    )
                self._pending = None

        elif status == Status.ERROR:
            # Rule: ERROR only follows an UNDEFINED opcode
            if self._last_undefined is None or cycle - self._last_undefined > 1:
                self._record_violation(
                    ViolationType.SPURIOUS_ERROR,
                    "ERROR status without an UNDEFINED opcode"
                )

        self._prev_status = status

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.severity == "ERROR")

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.severity == "WARNING")

    @property
    def passed(self) -> bool:
        if self.strict_mode:
            return not self.violations
        return self.error_count == 0

    def report(self) -> str:
        """Generate violation report"""
        lines = [
            "=" * 60,
            f"Protocol Checker Report: {self.name}",
            "=" * 60,
            f"Errors: {self.error_count}",
            f"Warnings: {self.warning_count}",
        ]

        if self.violations:
            lines.append("")
            lines.append("Violations:")
            for v in self.violations:
                lines.append(f"  [{v.cycle}] {v.severity} {v.type.name}: {v.message}")

        lines.append("=" * 60)
        return "\n".join(lines)
