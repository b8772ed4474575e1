"""
Tick Kernel

Discrete-clock scheduler for synchronous models on top of asyncio,
with cocotb-style triggers:

    clock = Clock(dut)                     # dut.posedge() runs on every tick
    start_soon(clock.start())

    await RisingEdge(clock)                # next tick
    await ClockCycles(clock, 20)           # 20 ticks from now
    await Condition(clock, predicate)      # first tick where predicate() holds
    fired = await First(a, b)              # whichever fires first; the rest are dropped

Triggers are not tasks. Awaiting a trigger registers a single future with the
clock; on each tick the clock checks every registration once, in order, and
resolves it with the first trigger that fired. Losing triggers of a First are
discarded with their registration and are never evaluated again.

Tick phases:
    1. cycle += 1
    2. dut.posedge()                       (sample inputs, update outputs)
    3. resolve triggers that fired
    4. yield settle_deltas times           (woken coroutines run to their next await)

If dut.posedge() raises, every pending trigger is failed with that exception
and the clock stops.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, List


def start_soon(coro) -> asyncio.Task:
    """Schedule a coroutine to run concurrently"""
    return asyncio.get_running_loop().create_task(coro)


#==============================================================================
# Triggers
#==============================================================================

class Trigger:
    """Base class for events a coroutine can wait on"""

    def __init__(self, clock: 'Clock'):
        self.clock = clock

    def _arm(self, cycle: int):
        """Called when the trigger is registered at the given cycle"""
        pass

    def _fires(self, cycle: int) -> bool:
        raise NotImplementedError

    def __await__(self):
        return self.clock._register([self]).__await__()


class RisingEdge(Trigger):
    """Fires on the next tick"""

    def _fires(self, cycle: int) -> bool:
        return True

    def __repr__(self):
        return f"RisingEdge({self.clock.name})"


class ClockCycles(Trigger):
    """Fires after num_cycles ticks"""

    def __init__(self, clock: 'Clock', num_cycles: int):
        if num_cycles < 1:
            raise ValueError(f"num_cycles must be >= 1, got {num_cycles}")
        super().__init__(clock)
        self.num_cycles = num_cycles
        self._target = None

    def _arm(self, cycle: int):
        self._target = cycle + self.num_cycles

    def _fires(self, cycle: int) -> bool:
        return cycle >= self._target

    def __repr__(self):
        return f"ClockCycles({self.clock.name}, {self.num_cycles})"


class Condition(Trigger):
    """Fires on the first tick after registration where predicate() is true"""

    def __init__(self, clock: 'Clock', predicate: Callable[[], bool], name: str = "condition"):
        super().__init__(clock)
        self.predicate = predicate
        self.name = name

    def _fires(self, cycle: int) -> bool:
        return bool(self.predicate())

    def __repr__(self):
        return f"Condition({self.name})"


class First:
    """Race several triggers on one clock; awaits to the trigger that fired"""

    def __init__(self, *triggers: Trigger):
        if not triggers:
            raise ValueError("First() needs at least one trigger")
        clock = triggers[0].clock
        if any(t.clock is not clock for t in triggers):
            raise ValueError("All triggers in First() must share one clock")
        self.clock = clock
        self.triggers = triggers

    def __await__(self):
        return self.clock._register(list(self.triggers)).__await__()


#==============================================================================
# Clock
#==============================================================================

@dataclass
class _Registration:
    future: asyncio.Future
    triggers: List[Trigger]


class Clock:
    """Tick source driving a synchronous model"""

    def __init__(self, dut, name: str = "clk", settle_deltas: int = 4):
        """
        Args:
            dut: Object with a posedge() method, called once per tick
            name: Clock name (for logging)
            settle_deltas: Scheduler passes after each tick
        """
        self.dut = dut
        self.name = name
        self.settle_deltas = settle_deltas
        self.cycle = 0
        self._registrations: List[_Registration] = []
        self._running = False

    @property
    def pending(self) -> int:
        """Number of live trigger registrations"""
        return sum(1 for r in self._registrations if not r.future.done())

    def _register(self, triggers: List[Trigger]) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        for trigger in triggers:
            trigger._arm(self.cycle)
        self._registrations.append(_Registration(future, triggers))
        return future

    async def tick(self):
        """Advance one cycle"""
        self.cycle += 1
        try:
            self.dut.posedge()
        except Exception as exc:
            # Fail every waiter with the model's exception
            self._running = False
            registrations, self._registrations = self._registrations, []
            for reg in registrations:
                if not reg.future.done():
                    reg.future.set_exception(exc)
            raise

        registrations, self._registrations = self._registrations, []
        for reg in registrations:
            if reg.future.done():
                # Awaiting task was cancelled
                continue
            fired = next((t for t in reg.triggers if t._fires(self.cycle)), None)
            if fired is None:
                self._registrations.append(reg)
            else:
                reg.future.set_result(fired)

        for _ in range(self.settle_deltas):
            await asyncio.sleep(0)

    async def start(self, cycles: int = None):
        """Run ticks until stop() is called or cycles have elapsed"""
        self._running = True
        count = 0
        while self._running and (cycles is None or count < cycles):
            await self.tick()
            count += 1
        self._running = False

    def stop(self):
        self._running = False
