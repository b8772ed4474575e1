"""
Crypto Protocol Verification

This package provides the scoreboard and the protocol checker.
"""

from .scoreboard import Scoreboard, Mismatch
from .protocol_checker import (
    ProtocolChecker,
    ViolationType,
    Violation
)

__all__ = [
    'Scoreboard',
    'Mismatch',
    'ProtocolChecker',
    'ViolationType',
    'Violation'
]
