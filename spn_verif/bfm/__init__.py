"""
Crypto Accelerator Bus Functional Models

This package provides the protocol bus, driver and monitor BFMs.
"""

from .crypto_bfm import (
    ProtocolBus,
    BusSample,
    CryptoDriver,
    CryptoMonitor,
    Completed,
    TimedOut,
    wait_for_response
)

__all__ = [
    'ProtocolBus',
    'BusSample',
    'CryptoDriver',
    'CryptoMonitor',
    'Completed',
    'TimedOut',
    'wait_for_response'
]
