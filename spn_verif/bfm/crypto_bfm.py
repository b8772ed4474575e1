"""
Crypto Accelerator Bus Functional Model (BFM)

Driver and monitor models for the accelerator's tick-synchronous
request/response protocol. Both talk to the engine only through the
ProtocolBus signals: the driver writes inputs, the monitor reads the
values sampled at each edge plus the registered outputs.

Driver timing per request:
    tick +1   write opcode/data/key
    tick +2   engine samples; opcode back to NOP
              (UNDEFINED is re-asserted for `undefined_hold` more ticks)
    then      ENCRYPT/DECRYPT: race status != NONE against timeout_ticks,
                               then hold post_response_hold ticks
              NOP/UNDEFINED:   wait idle_wait ticks
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from ..config import TestbenchConfig
from ..protocol import (Opcode, Status, Request, Response, Transaction,
                        DATA_MASK, KEY_MASK)
from ..sim import Clock, RisingEdge, ClockCycles, Condition, First, start_soon


@dataclass(frozen=True)
class BusSample:
    """Input values captured at one clock edge"""
    reset: bool = False
    opcode: Opcode = Opcode.NOP
    data_in: int = 0
    secret_key: int = 0

    def request(self) -> Request:
        return Request(self.opcode, self.data_in, self.secret_key)


class ProtocolBus:
    """
    Register interface between the testbench and the engine model

    Inputs are written freely between ticks and take effect at the next
    posedge, where they are latched into `sampled`. Outputs are the
    engine's registered data_out/status.
    """

    def __init__(self, engine):
        self.engine = engine

        # Driven inputs
        self.reset = False
        self.opcode = Opcode.NOP
        self.data_in = 0
        self.secret_key = 0

        # Inputs latched at the current and previous edge
        self.sampled = BusSample()
        self.previous = BusSample()

    def drive(self, request: Request):
        """Place a request on the input signals"""
        self.opcode = request.opcode
        self.data_in = request.data
        self.secret_key = request.key

    def posedge(self):
        self.previous = self.sampled
        self.sampled = BusSample(
            reset=bool(self.reset),
            opcode=Opcode(self.opcode),
            data_in=self.data_in & DATA_MASK,
            secret_key=self.secret_key & KEY_MASK
        )
        self.engine.posedge(
            reset=self.sampled.reset,
            opcode=self.sampled.opcode,
            data_in=self.sampled.data_in,
            secret_key=self.sampled.secret_key
        )

    @property
    def data_out(self) -> int:
        return self.engine.data_out

    @property
    def status(self) -> Status:
        return Status(self.engine.status)

    @property
    def response_valid(self) -> bool:
        return self.status != Status.NONE

    def response(self) -> Response:
        return Response(data_out=self.data_out, status=self.status)

    @property
    def pulse_start(self) -> bool:
        """A non-NOP opcode was sampled this edge that was not held from the last one"""
        return (not self.sampled.reset
                and self.sampled.opcode != Opcode.NOP
                and self.sampled.opcode != self.previous.opcode)


#==============================================================================
# Bounded wait
#==============================================================================

@dataclass(frozen=True)
class Completed:
    """Status went non-NONE within the budget"""
    response: Response
    cycle: int


@dataclass(frozen=True)
class TimedOut:
    """Budget expired; response holds whatever the outputs showed"""
    response: Response
    cycle: int


WaitResult = Union[Completed, TimedOut]


async def wait_for_response(bus: ProtocolBus, clock: Clock, timeout_ticks: int) -> WaitResult:
    """Wait for status != NONE or timeout_ticks ticks, whichever comes first"""
    done = Condition(clock, lambda: bus.response_valid, name="status")
    expired = ClockCycles(clock, timeout_ticks)

    fired = await First(done, expired)

    if fired is done:
        return Completed(bus.response(), clock.cycle)
    return TimedOut(bus.response(), clock.cycle)


#==============================================================================
# Driver
#==============================================================================

class CryptoDriver:
    """
    Crypto Request Driver

    Hands one request at a time to the engine; never overlaps requests.
    """

    def __init__(self, bus: ProtocolBus, clock: Clock, config: TestbenchConfig = None):
        self.bus = bus
        self.clock = clock
        self.config = config or TestbenchConfig()
        self.log = logging.getLogger("CryptoDriver")

        # Statistics
        self.stats = {
            'requests': 0,
            'completed': 0,
            'timeouts': 0,
        }

    def _init_signals(self):
        """Drive all inputs to idle values"""
        self.bus.opcode = Opcode.NOP
        self.bus.data_in = 0
        self.bus.secret_key = 0

    async def delay(self, cycles: int):
        """Wait for specified clock cycles"""
        for _ in range(cycles):
            await RisingEdge(self.clock)

    async def reset(self):
        """Hold reset for the settle window, release, then wait the settle margin"""
        self._init_signals()
        self.bus.reset = True
        await self.delay(self.config.reset_cycles)
        self.bus.reset = False
        await self.delay(self.config.reset_settle_cycles)
        self.log.debug(f"Reset released at cycle {self.clock.cycle}")

    async def drive(self, request: Request) -> Optional[WaitResult]:
        """
        Drive one request and wait for it to finish

        Returns:
            Completed/TimedOut for ENCRYPT and DECRYPT, None otherwise
        """
        self.stats['requests'] += 1
        self.log.debug(f"[{self.clock.cycle}] drive {request}")

        await RisingEdge(self.clock)
        self.bus.drive(request)

        # Engine samples the request on this edge
        await RisingEdge(self.clock)

        if request.opcode == Opcode.UNDEFINED:
            # Keep the error state observable
            for _ in range(self.config.undefined_hold):
                self.bus.opcode = Opcode.UNDEFINED
                await RisingEdge(self.clock)

        self.bus.opcode = Opcode.NOP

        if request.opcode in (Opcode.ENCRYPT, Opcode.DECRYPT):
            result = await wait_for_response(self.bus, self.clock, self.config.timeout_ticks)
            if isinstance(result, TimedOut):
                self.stats['timeouts'] += 1
                self.log.warning(f"[{self.clock.cycle}] timeout after "
                                 f"{self.config.timeout_ticks} ticks waiting for {request}")
            else:
                self.stats['completed'] += 1
            await self.delay(self.config.post_response_hold)
            return result

        await self.delay(self.config.idle_wait)
        return None

    async def drive_all(self, requests) -> List[Optional[WaitResult]]:
        """Drive a request stream in order"""
        return [await self.drive(request) for request in requests]


#==============================================================================
# Monitor
#==============================================================================

class CryptoMonitor:
    """
    Crypto Protocol Monitor

    Passively rebuilds one Transaction per non-NOP opcode pulse and
    emits it to the output queue and callbacks.
    """

    def __init__(self, bus: ProtocolBus, clock: Clock, config: TestbenchConfig = None,
                 queue=None):
        """
        Args:
            bus: Protocol bus to observe
            clock: Tick source
            config: Supplies timeout_ticks
            queue: Optional asyncio.Queue receiving every transaction
        """
        self.bus = bus
        self.clock = clock
        self.config = config or TestbenchConfig()
        self.queue = queue
        self.log = logging.getLogger("CryptoMonitor")

        # Transaction log
        self.transactions: List[Transaction] = []

        # Callbacks
        self.on_transaction: List[Callable[[Transaction], None]] = []

        self._running = False
        self._task = None

    async def start(self):
        """Start monitoring"""
        self._running = True
        self._task = start_soon(self._monitor())
        return self._task

    def stop(self):
        """Stop monitoring"""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def _emit(self, txn: Transaction):
        self.transactions.append(txn)
        self.log.debug(f"[{txn.end_cycle}] {txn.request} -> {txn.response}"
                       f"{' (timeout)' if txn.timed_out else ''}")
        if self.queue is not None:
            self.queue.put_nowait(txn)
        for callback in self.on_transaction:
            callback(txn)

    async def _monitor(self):
        """Watch every edge for request pulses"""
        while self._running:
            await RisingEdge(self.clock)

            if not self.bus.pulse_start:
                continue

            request = self.bus.sampled.request()
            start = self.clock.cycle

            if request.opcode == Opcode.UNDEFINED:
                # Error is visible on the accepting edge
                self._emit(Transaction(request, self.bus.response(),
                                       start_cycle=start, end_cycle=start))
                continue

            result = await wait_for_response(self.bus, self.clock, self.config.timeout_ticks)
            timed_out = isinstance(result, TimedOut)
            if timed_out:
                self.log.warning(f"[{result.cycle}] no response for {request} "
                                 f"within {self.config.timeout_ticks} ticks")

            self._emit(Transaction(request, result.response, timed_out=timed_out,
                                   start_cycle=start, end_cycle=result.cycle))
