"""
Crypto Transaction Scoreboard

Compares every observed transaction against the golden model's
prediction. Mismatches are logged and counted as they happen and never
stop the run; the verdict is PASS iff fail_count == 0.
"""

import logging
from dataclasses import dataclass
from typing import List

from ..model.golden import GoldenModel
from ..protocol import Transaction, Response


@dataclass(frozen=True)
class Mismatch:
    """One failed comparison"""
    transaction: Transaction
    expected: Response

    def __str__(self):
        txn = self.transaction
        note = " (timeout)" if txn.timed_out else ""
        return (f"[{txn.end_cycle}] {txn.request}: expected {self.expected}, "
                f"got {txn.response}{note}")


class Scoreboard:
    """
    Crypto Transaction Scoreboard

    record() is synchronous, so each comparison and counter update
    completes without interleaving with other tasks.
    """

    def __init__(self, golden: GoldenModel = None, name: str = "crypto"):
        self.golden = golden or GoldenModel()
        self.name = name
        self.pass_count = 0
        self.fail_count = 0
        self.mismatches: List[Mismatch] = []
        self.log = logging.getLogger(f"Scoreboard.{name}")

    def record(self, txn: Transaction) -> bool:
        """Score one transaction; returns True on match"""
        expected = self.golden.predict(txn.request)
        actual = txn.response

        if actual.data_out == expected.data_out and actual.status == expected.status:
            self.pass_count += 1
            self.log.info(f"PASS {txn.request} -> {actual}")
            return True

        mismatch = Mismatch(txn, expected)
        self.mismatches.append(mismatch)
        self.fail_count += 1
        self.log.error(f"FAIL {mismatch}")
        return False

    async def run(self, queue):
        """Consume transactions from an asyncio.Queue until cancelled"""
        while True:
            txn = await queue.get()
            try:
                self.record(txn)
            finally:
                queue.task_done()

    @property
    def passed(self) -> bool:
        return self.fail_count == 0

    def report(self) -> bool:
        """Log the final tally and return the run verdict"""
        verdict = "PASS" if self.passed else "FAIL"
        summary = f"{verdict}: {self.pass_count} passed, {self.fail_count} failed"
        if self.passed:
            self.log.info(summary)
        else:
            self.log.error(summary)
        return self.passed

    def summary(self) -> str:
        """Generate scoreboard report"""
        lines = [
            "=" * 60,
            f"Scoreboard Report: {self.name}",
            "=" * 60,
            f"Passed: {self.pass_count}",
            f"Failed: {self.fail_count}",
            f"Verdict: {'PASS' if self.passed else 'FAIL'}",
        ]

        if self.mismatches:
            lines.append("")
            lines.append("Mismatches:")
            for m in self.mismatches:
                lines.append(f"  {m}")

        lines.append("=" * 60)
        return "\n".join(lines)
