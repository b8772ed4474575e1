"""
Scoreboard Tests
"""

import asyncio
import logging

from spn_verif.checker import Scoreboard
from spn_verif.protocol import Opcode, Status, Request, Response, Transaction


def txn(opcode, data, key, data_out, status, timed_out=False):
    return Transaction(Request(opcode, data, key), Response(data_out, status),
                       timed_out=timed_out)


def test_matching_transactions_pass():
    sb = Scoreboard()
    assert sb.record(txn(Opcode.ENCRYPT, 0xABCD, 0x12345678, 0xAEF2, Status.ENCRYPT_OK))
    assert sb.record(txn(Opcode.DECRYPT, 0x1234, 0x12345678, 0x2876, Status.DECRYPT_OK))
    assert sb.record(txn(Opcode.UNDEFINED, 0xFFFF, 0xFFFFFFFF, 0, Status.ERROR))

    assert sb.pass_count == 3
    assert sb.fail_count == 0
    assert sb.passed
    assert sb.report()


def test_single_bit_corruption_detected():
    sb = Scoreboard()
    good = 0xAEF2
    for bit in range(16):
        assert not sb.record(txn(Opcode.ENCRYPT, 0xABCD, 0x12345678,
                                 good ^ (1 << bit), Status.ENCRYPT_OK))
    assert sb.fail_count == 16
    assert sb.pass_count == 0
    assert not sb.passed


def test_wrong_status_detected():
    sb = Scoreboard()
    assert not sb.record(txn(Opcode.ENCRYPT, 0xABCD, 0x12345678, 0xAEF2, Status.DECRYPT_OK))
    assert not sb.record(txn(Opcode.UNDEFINED, 0, 0, 0, Status.NONE))
    assert sb.fail_count == 2


def test_timed_out_transaction_fails():
    sb = Scoreboard()
    assert not sb.record(txn(Opcode.ENCRYPT, 0xABCD, 0x12345678, 0, Status.NONE,
                             timed_out=True))
    mismatch = sb.mismatches[0]
    assert mismatch.expected == Response(0xAEF2, Status.ENCRYPT_OK)
    assert "(timeout)" in str(mismatch)


def test_failures_do_not_stop_scoring():
    sb = Scoreboard()
    sb.record(txn(Opcode.ENCRYPT, 0xABCD, 0x12345678, 0, Status.ENCRYPT_OK))
    sb.record(txn(Opcode.ENCRYPT, 0xABCD, 0x12345678, 0xAEF2, Status.ENCRYPT_OK))
    assert (sb.pass_count, sb.fail_count) == (1, 1)
    assert not sb.report()


def test_logging(caplog):
    caplog.set_level(logging.INFO, logger="Scoreboard.unit")
    sb = Scoreboard(name="unit")
    sb.record(txn(Opcode.DECRYPT, 0x1234, 0x12345678, 0x2876, Status.DECRYPT_OK))
    sb.record(txn(Opcode.DECRYPT, 0x1234, 0x12345678, 0x2877, Status.DECRYPT_OK))
    sb.report()

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert any("FAIL" in r.getMessage() and "0x2877" in r.getMessage() for r in errors)
    assert any("1 passed, 1 failed" in r.getMessage() for r in errors)
    assert any(r.levelno == logging.INFO and "PASS" in r.getMessage()
               for r in caplog.records)


def test_summary_lists_mismatches():
    sb = Scoreboard(name="unit")
    sb.record(txn(Opcode.ENCRYPT, 0, 0, 0x4445, Status.ENCRYPT_OK))
    text = sb.summary()
    assert "Scoreboard Report: unit" in text
    assert "Failed: 1" in text
    assert "Verdict: FAIL" in text
    assert "expected ENCRYPT_OK(data_out=0x4444)" in text


def test_run_consumes_queue():
    async def main():
        sb = Scoreboard()
        queue = asyncio.Queue()
        task = asyncio.get_running_loop().create_task(sb.run(queue))
        queue.put_nowait(txn(Opcode.ENCRYPT, 0, 0, 0x4444, Status.ENCRYPT_OK))
        queue.put_nowait(txn(Opcode.DECRYPT, 0, 0, 0x2222, Status.DECRYPT_OK))
        queue.put_nowait(txn(Opcode.DECRYPT, 0, 0, 0x0000, Status.DECRYPT_OK))
        await queue.join()
        task.cancel()
        return sb

    sb = asyncio.run(main())
    assert (sb.pass_count, sb.fail_count) == (2, 1)
