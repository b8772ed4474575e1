"""
Coverage Collection Framework

This package provides coverage collection and reporting for verification.
"""

from .coverage_collector import (
    CoverageCollector,
    CoverPoint,
    CoverageBin,
    CrossCoverage,
    CryptoCoverageCollector,
    operand_class
)

__all__ = [
    'CoverageCollector',
    'CoverPoint',
    'CoverageBin',
    'CrossCoverage',
    'CryptoCoverageCollector',
    'operand_class'
]
