"""
Driver / Monitor BFM Tests

Runs the BFMs against the engine model on the tick kernel.
"""

import asyncio

from spn_verif.bfm import ProtocolBus, CryptoDriver, CryptoMonitor, Completed, TimedOut
from spn_verif.config import TestbenchConfig
from spn_verif.model import CryptoEngine
from spn_verif.protocol import Opcode, Status, Request, Response
from spn_verif.sim import Clock, start_soon


def run_requests(requests, engine=None, config=None):
    """Reset, drive requests in order, drain; returns (driver results, monitor, driver)"""
    engine = engine or CryptoEngine()
    config = config or TestbenchConfig()

    async def main():
        bus = ProtocolBus(engine)
        clock = Clock(bus)
        driver = CryptoDriver(bus, clock, config)
        monitor = CryptoMonitor(bus, clock, config)

        clock_task = start_soon(clock.start())
        await monitor.start()

        await driver.reset()
        results = await driver.drive_all(requests)
        await driver.delay(config.drain_cycles)

        monitor.stop()
        clock.stop()
        await clock_task
        return results, monitor, driver

    return asyncio.run(main())


def test_reset_sequencing():
    results, monitor, driver = run_requests([])
    assert results == []
    assert monitor.transactions == []
    assert driver.clock.cycle == 5 + 2 + 4


def test_encrypt_transaction():
    request = Request(Opcode.ENCRYPT, 0xABCD, 0x12345678)
    results, monitor, driver = run_requests([request])

    result = results[0]
    assert isinstance(result, Completed)
    assert result.response == Response(0xAEF2, Status.ENCRYPT_OK)

    assert len(monitor.transactions) == 1
    txn = monitor.transactions[0]
    assert txn.request == request
    assert txn.response == result.response
    assert not txn.timed_out
    # Accepted on one edge, result two edges later
    assert txn.latency == CryptoEngine.ACCEPT_LATENCY - 1
    assert txn.end_cycle == result.cycle

    assert driver.stats == {'requests': 1, 'completed': 1, 'timeouts': 0}


def test_decrypt_transaction():
    results, monitor, _ = run_requests([Request(Opcode.DECRYPT, 0x1234, 0x12345678)])
    assert results[0].response == Response(0x2876, Status.DECRYPT_OK)
    assert monitor.transactions[0].response == Response(0x2876, Status.DECRYPT_OK)


def test_undefined_produces_one_transaction():
    """UNDEFINED is held for several edges but is still one request"""
    request = Request(Opcode.UNDEFINED, 0xFFFF, 0xFFFFFFFF)
    results, monitor, _ = run_requests([request])

    assert results == [None]
    assert len(monitor.transactions) == 1
    txn = monitor.transactions[0]
    assert txn.request.opcode == Opcode.UNDEFINED
    assert txn.response == Response(0, Status.ERROR)
    assert txn.latency == 0


def test_nop_produces_no_transaction():
    results, monitor, driver = run_requests([Request(Opcode.NOP), Request(Opcode.NOP)])
    assert results == [None, None]
    assert monitor.transactions == []
    assert driver.stats['requests'] == 2


def test_mixed_stream_in_order():
    requests = [
        Request(Opcode.NOP),
        Request(Opcode.ENCRYPT, 0xABCD, 0x12345678),
        Request(Opcode.UNDEFINED),
        Request(Opcode.DECRYPT, 0xAEF2, 0x12345678),
        Request(Opcode.ENCRYPT, 0xABCD, 0x12345678),
    ]
    _, monitor, _ = run_requests(requests)

    observed = [(t.request.opcode, t.response) for t in monitor.transactions]
    assert observed == [
        (Opcode.ENCRYPT, Response(0xAEF2, Status.ENCRYPT_OK)),
        (Opcode.UNDEFINED, Response(0, Status.ERROR)),
        (Opcode.DECRYPT, Response(0xABCD, Status.DECRYPT_OK)),
        (Opcode.ENCRYPT, Response(0xAEF2, Status.ENCRYPT_OK)),
    ]
    cycles = [t.start_cycle for t in monitor.transactions]
    assert cycles == sorted(cycles)


def test_hung_engine_times_out():
    config = TestbenchConfig(timeout_ticks=8)
    request = Request(Opcode.ENCRYPT, 0xABCD, 0x12345678)
    results, monitor, driver = run_requests([request], engine=CryptoEngine(hang=True),
                                            config=config)

    assert isinstance(results[0], TimedOut)
    assert results[0].response == Response(0, Status.NONE)
    assert driver.stats['timeouts'] == 1

    txn = monitor.transactions[0]
    assert txn.timed_out
    assert txn.response == Response(0, Status.NONE)
    assert txn.latency == 8


def test_monitor_feeds_queue_and_callbacks():
    seen = []

    async def main():
        engine = CryptoEngine()
        bus = ProtocolBus(engine)
        clock = Clock(bus)
        queue = asyncio.Queue()
        driver = CryptoDriver(bus, clock)
        monitor = CryptoMonitor(bus, clock, queue=queue)
        monitor.on_transaction.append(seen.append)

        clock_task = start_soon(clock.start())
        await monitor.start()
        await driver.reset()
        await driver.drive(Request(Opcode.ENCRYPT, 0, 0))
        monitor.stop()
        clock.stop()
        await clock_task
        return queue

    queue = asyncio.run(main())
    assert queue.qsize() == 1
    txn = queue.get_nowait()
    assert seen == [txn]
    assert txn.response == Response(0x4444, Status.ENCRYPT_OK)
