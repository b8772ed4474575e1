"""
Crypto Accelerator Testbench

Wires one engine model, protocol bus, clock, driver, monitor,
scoreboard, protocol checker and coverage collector together:

    Sequence -> Driver -> Engine -> Monitor -> Scoreboard <- Golden model
                                       |
                                       +-> Coverage, Protocol checker

Usage:
    result = run_sequence('basic')
    assert result.passed

    tb = CryptoTestbench(TestbenchConfig(seed=7))
    passed = asyncio.run(tb.run(random_sequence(100, seed=7)))
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Union

from .bfm import ProtocolBus, CryptoDriver, CryptoMonitor
from .checker import Scoreboard, ProtocolChecker, Violation
from .config import TestbenchConfig
from .coverage import CryptoCoverageCollector
from .model import CryptoEngine, GoldenModel
from .protocol import Request, Transaction
from .sequences import get_sequence
from .sim import Clock, start_soon


@dataclass
class TestbenchResult:
    """Outcome of one testbench run"""
    __test__ = False  # not a pytest test class

    passed: bool
    pass_count: int
    fail_count: int
    transactions: List[Transaction] = field(default_factory=list)
    violations: List[Violation] = field(default_factory=list)
    coverage: float = 0.0
    cycles: int = 0

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1


class CryptoTestbench:
    """
    Crypto Accelerator Verification Environment
    """

    def __init__(self, config: TestbenchConfig = None, engine: CryptoEngine = None):
        """
        Args:
            config: Testbench configuration (defaults if None)
            engine: Engine model under test (a fresh CryptoEngine if None)
        """
        self.config = (config or TestbenchConfig()).validate()
        self.engine = engine or CryptoEngine(verbose=self.config.verbose)

        self.bus = ProtocolBus(self.engine)
        self.clock = Clock(self.bus, settle_deltas=self.config.settle_deltas)

        self.driver = CryptoDriver(self.bus, self.clock, self.config)
        self.monitor = CryptoMonitor(self.bus, self.clock, self.config)
        self.scoreboard = Scoreboard(GoldenModel())
        self.checker = ProtocolChecker(
            self.bus, self.clock,
            latency=CryptoEngine.ACCEPT_LATENCY,
            timeout_ticks=self.config.timeout_ticks
        )
        self.coverage = CryptoCoverageCollector()
        self.monitor.on_transaction.append(self.coverage.sample_transaction)

        self.log = logging.getLogger("CryptoTestbench")

    async def run(self, requests: Iterable[Request]) -> bool:
        """
        Drive a request stream through the engine and return the verdict

        An exception raised by the engine model aborts the run and propagates.
        """
        requests = list(requests)
        queue = asyncio.Queue()
        self.monitor.queue = queue

        clock_task = start_soon(self.clock.start())
        scoreboard_task = start_soon(self.scoreboard.run(queue))
        monitor_task = await self.monitor.start()
        checker_task = await self.checker.start()

        try:
            await self.driver.reset()
            self.log.info(f"Driving {len(requests)} requests")
            for request in requests:
                await self.driver.drive(request)
            await self.driver.delay(self.config.drain_cycles)
            await queue.join()
        except Exception as exc:
            self.log.error(f"Run aborted at cycle {self.clock.cycle}: {exc!r}")
            raise
        finally:
            self.monitor.stop()
            self.checker.stop()
            self.clock.stop()
            scoreboard_task.cancel()
            clock_task.cancel()
            await asyncio.gather(clock_task, scoreboard_task, monitor_task, checker_task,
                                 return_exceptions=True)

        self.log.info(f"Coverage {self.coverage.total_coverage:.1f}%")
        for name, bins in self.coverage.get_uncovered().items():
            self.log.debug(f"Uncovered {name}: {', '.join(bins)}")
        return self.scoreboard.report()

    def result(self) -> TestbenchResult:
        return TestbenchResult(
            passed=self.scoreboard.passed,
            pass_count=self.scoreboard.pass_count,
            fail_count=self.scoreboard.fail_count,
            transactions=list(self.monitor.transactions),
            violations=list(self.checker.violations),
            coverage=self.coverage.total_coverage,
            cycles=self.clock.cycle
        )


def run_sequence(sequence: Union[str, Iterable[Request]],
                 config: TestbenchConfig = None,
                 engine: CryptoEngine = None) -> TestbenchResult:
    """
    Run a named sequence or a request list on a fresh testbench

    Without an explicit config, SPN_VERIF_* environment variables apply.
    """
    config = config or TestbenchConfig.from_env()
    if isinstance(sequence, str):
        sequence = get_sequence(sequence, config)
    tb = CryptoTestbench(config, engine)
    asyncio.run(tb.run(sequence))
    return tb.result()
