"""
Coverage Collection Tests
"""

import json

import pytest

from spn_verif.coverage import CoverPoint, CryptoCoverageCollector, operand_class
from spn_verif.protocol import Opcode, Status, Request, Response, Transaction


def make_txn(opcode, data, key, data_out, status, timed_out=False):
    return Transaction(Request(opcode, data, key), Response(data_out, status),
                       timed_out=timed_out)


def test_operand_class():
    assert operand_class(0x0000, 16) == "zero"
    assert operand_class(0xFFFF, 16) == "ones"
    assert operand_class(0x8000, 16) == "msb"
    assert operand_class(0x0001, 16) == "lsb"
    assert operand_class(0xAAAA, 16) == "alternating"
    assert operand_class(0x5555, 16) == "alternating"
    assert operand_class(0x55555555, 32) == "alternating"
    assert operand_class(0x80000000, 32) == "msb"
    assert operand_class(0xABCD, 16) == "other"


def test_coverpoint_bins():
    cp = CoverPoint("opcode")
    cp.add_bin("ENCRYPT", target=2)
    cp.add_bin("DECRYPT")
    cp.ignore_bins.add("NOP")
    cp.illegal_bins.add("BOGUS")

    cp.sample("ENCRYPT")
    cp.sample("NOP")
    assert cp.coverage_percent == 0.0
    cp.sample("ENCRYPT")
    assert cp.coverage_percent == 50.0
    assert "NOP" not in cp.bins

    with pytest.raises(ValueError):
        cp.sample("BOGUS")


def test_crypto_coverage_closes_on_directed_stream():
    cov = CryptoCoverageCollector()
    cov.sample_transaction(make_txn(Opcode.ENCRYPT, 0xABCD, 0x12345678, 0xAEF2, Status.ENCRYPT_OK))
    cov.sample_transaction(make_txn(Opcode.DECRYPT, 0x1234, 0x12345678, 0x2876, Status.DECRYPT_OK))
    cov.sample_transaction(make_txn(Opcode.UNDEFINED, 0xFFFF, 0xFFFFFFFF, 0, Status.ERROR))

    assert cov.coverpoints["opcode"].coverage_percent == 100.0
    assert cov.coverpoints["status"].coverage_percent == 100.0
    assert cov.coverpoints["outcome"].coverage_percent == 100.0
    assert cov.crosses["opcode_status_cross"].coverage_percent == 100.0

    uncovered = cov.get_uncovered()
    assert "opcode" not in uncovered
    assert "zero" in uncovered["data_class"]


def test_timeouts_and_illegal_pairs_are_visible():
    cov = CryptoCoverageCollector()
    cov.sample_transaction(make_txn(Opcode.ENCRYPT, 0x1234, 0x5678, 0, Status.NONE,
                                    timed_out=True))

    outcome = cov.coverpoints["outcome"]
    assert outcome.bins["timed_out"].hit_count == 1
    # An unexpected opcode/status pair shows up as an extra cross bin
    assert ("ENCRYPT", "NONE") in cov.crosses["opcode_status_cross"].bins
    assert "ENCRYPT_OK" in cov.get_uncovered()["status"]


def test_report_and_json():
    cov = CryptoCoverageCollector()
    cov.sample_transaction(make_txn(Opcode.ENCRYPT, 0, 0, 0x4444, Status.ENCRYPT_OK))

    text = cov.report()
    assert "Coverage Report: crypto_coverage" in text
    assert "opcode_status_cross" in text

    data = json.loads(cov.to_json())
    assert data["coverpoints"]["opcode"]["bins"]["ENCRYPT"]["hits"] == 1
    assert data["coverpoints"]["data_class"]["bins"]["zero"]["covered"]
    assert 0.0 < data["total_coverage"] < 100.0

    assert data["crosses"]["opcode_status_cross"]["coverpoints"] == ["opcode", "status"]


def test_unexpected_bins_do_not_count_toward_coverage():
    cov = CryptoCoverageCollector()
    cov.sample_transaction(make_txn(Opcode.DECRYPT, 0x1234, 0x5678, 0, Status.NONE,
                                    timed_out=True))
    outcome = cov.coverpoints["outcome"]
    assert not outcome.bins["timed_out"].target
    assert outcome.coverage_percent == 0.0
    assert "[x] timed_out: 1  (unexpected)" in cov.report()


def test_cross_arity_and_unknown_points():
    cov = CryptoCoverageCollector()
    with pytest.raises(ValueError):
        cov.sample_cross("opcode_status_cross", ("ENCRYPT",))
    with pytest.raises(KeyError):
        cov.add_cross("bad_cross", ["opcode", "latency"])
    with pytest.raises(KeyError):
        cov.sample("latency", 3)
