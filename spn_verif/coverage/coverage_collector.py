"""
Coverage Collection Framework

Functional and cross coverage for crypto accelerator verification:
which opcodes, statuses and operand classes the stimulus actually reached.

Bins named up front are coverage targets. Values sampled outside them get
a bin created on the fly, so unexpected outcomes (a timeout, an illegal
opcode/status pairing) stay visible without lowering coverage of the
targets that matter.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Set, Tuple

from ..protocol import Opcode, Status, Transaction, DATA_WIDTH, KEY_WIDTH


@dataclass
class CoverageBin:
    """Single coverage bin"""
    name: str
    hit_count: int = 0
    target_count: int = 1  # Hits needed to count as covered
    target: bool = True    # False for bins created by an unexpected sample

    @property
    def covered(self) -> bool:
        return self.hit_count >= self.target_count


@dataclass
class _BinGroup:
    """Bins keyed by sampled value; coverage is measured over target bins"""
    name: str
    bins: Dict[Hashable, CoverageBin] = field(default_factory=dict)

    def add_bin(self, key: Hashable, target: int = 1):
        self.bins[key] = CoverageBin(name=str(key), target_count=target)

    def _hit(self, key: Hashable):
        if key not in self.bins:
            self.bins[key] = CoverageBin(name=str(key), target=False)
        self.bins[key].hit_count += 1

    @property
    def targets(self) -> List[CoverageBin]:
        return [b for b in self.bins.values() if b.target]

    @property
    def coverage_percent(self) -> float:
        targets = self.targets
        if not targets:
            return 0.0
        return 100.0 * sum(b.covered for b in targets) / len(targets)

    @property
    def uncovered(self) -> List[str]:
        return [b.name for b in self.targets if not b.covered]

    @property
    def hits(self) -> int:
        return sum(b.hit_count for b in self.bins.values())


@dataclass
class CoverPoint(_BinGroup):
    """Coverage point over one sampled value"""
    description: str = ""
    ignore_bins: Set[str] = field(default_factory=set)
    illegal_bins: Set[str] = field(default_factory=set)

    def sample(self, value: Any):
        key = str(value)
        if key in self.illegal_bins:
            raise ValueError(f"Illegal value sampled on {self.name}: {value}")
        if key not in self.ignore_bins:
            self._hit(key)


@dataclass
class CrossCoverage(_BinGroup):
    """Cross coverage between several cover points"""
    coverpoints: List[str] = field(default_factory=list)

    def sample(self, values: Tuple):
        if len(values) != len(self.coverpoints):
            raise ValueError(f"{self.name} crosses {len(self.coverpoints)} points, "
                             f"got {len(values)} values")
        self._hit(tuple(values))


class CoverageCollector:
    """Named group of cover points and crosses"""

    def __init__(self, name: str = "coverage"):
        self.name = name
        self.coverpoints: Dict[str, CoverPoint] = {}
        self.crosses: Dict[str, CrossCoverage] = {}

    def add_coverpoint(self, name: str, description: str = "",
                       bins: List[str] = None) -> CoverPoint:
        cp = CoverPoint(name=name, description=description)
        for b in bins or []:
            cp.add_bin(b)
        self.coverpoints[name] = cp
        return cp

    def add_cross(self, name: str, coverpoints: List[str]) -> CrossCoverage:
        unknown = [cp for cp in coverpoints if cp not in self.coverpoints]
        if unknown:
            raise KeyError(f"Cross {name} references unknown coverpoints: {unknown}")
        cross = CrossCoverage(name=name, coverpoints=list(coverpoints))
        self.crosses[name] = cross
        return cross

    def sample(self, coverpoint: str, value: Any):
        self.coverpoints[coverpoint].sample(value)

    def sample_cross(self, cross_name: str, values: Tuple):
        self.crosses[cross_name].sample(values)

    def _groups(self) -> List[_BinGroup]:
        return list(self.coverpoints.values()) + list(self.crosses.values())

    @property
    def total_coverage(self) -> float:
        """Covered target bins over all target bins, in percent"""
        targets = [b for g in self._groups() for b in g.targets]
        if not targets:
            return 0.0
        return 100.0 * sum(b.covered for b in targets) / len(targets)

    def get_uncovered(self) -> Dict[str, List[str]]:
        """Uncovered target bins per cover point / cross"""
        return {g.name: g.uncovered for g in self._groups() if g.uncovered}

    def report(self) -> str:
        """Generate coverage report"""
        lines = [
            "=" * 70,
            f"Coverage Report: {self.name}",
            "=" * 70,
            f"Total Coverage: {self.total_coverage:.1f}%",
        ]

        for title, groups in (("Coverpoints", self.coverpoints),
                              ("Cross Coverage", self.crosses)):
            if not groups:
                continue
            lines.append("")
            lines.append(f"{title}:")
            for name, group in sorted(groups.items()):
                lines.append(f"  {name}: {group.coverage_percent:.1f}% ({group.hits} hits)")
                for b in group.bins.values():
                    mark = "x" if b.covered else " "
                    extra = "" if b.target else "  (unexpected)"
                    lines.append(f"    [{mark}] {b.name}: {b.hit_count}{extra}")

        lines.append("=" * 70)
        return "\n".join(lines)

    def to_json(self) -> str:
        """Export coverage data as JSON"""
        def dump(group):
            return {
                'coverage': group.coverage_percent,
                'bins': {
                    b.name: {'hits': b.hit_count, 'covered': b.covered, 'target': b.target}
                    for b in group.bins.values()
                }
            }

        data = {
            'name': self.name,
            'total_coverage': self.total_coverage,
            'coverpoints': {name: dump(cp) for name, cp in self.coverpoints.items()},
            'crosses': {name: dict(dump(cross), coverpoints=cross.coverpoints)
                        for name, cross in self.crosses.items()},
        }
        return json.dumps(data, indent=2)


#==============================================================================
# Crypto Accelerator Coverage
#==============================================================================

OPERAND_CLASSES = ["zero", "ones", "msb", "lsb", "alternating", "other"]


def operand_class(value: int, width: int) -> str:
    """Classify an operand into a boundary bin"""
    mask = (1 << width) - 1
    alternating = int("10" * (width // 2), 2)
    if value == 0:
        return "zero"
    if value == mask:
        return "ones"
    if value == 1 << (width - 1):
        return "msb"
    if value == 1:
        return "lsb"
    if value in (alternating, alternating >> 1):
        return "alternating"
    return "other"


class CryptoCoverageCollector(CoverageCollector):
    """
    Specialized coverage collector for the crypto accelerator
    """

    def __init__(self, name: str = "crypto_coverage"):
        super().__init__(name)
        self._setup_coverpoints()

    def _setup_coverpoints(self):
        """Setup crypto-specific coverpoints"""

        self.add_coverpoint(
            "opcode",
            "Request opcode coverage",
            bins=[op.name for op in Opcode if op != Opcode.NOP]
        )

        self.add_coverpoint(
            "status",
            "Observed status coverage",
            bins=[st.name for st in Status if st != Status.NONE]
        )

        self.add_coverpoint(
            "data_class",
            "Data operand boundary coverage",
            bins=OPERAND_CLASSES
        )

        self.add_coverpoint(
            "key_class",
            "Key operand boundary coverage",
            bins=OPERAND_CLASSES
        )

        self.add_coverpoint(
            "outcome",
            "Transaction completion coverage",
            bins=["completed", "immediate"]
        )

        # Cross coverage: opcode x status (only legal pairs are targets)
        cross = self.add_cross("opcode_status_cross", ["opcode", "status"])
        cross.add_bin((Opcode.ENCRYPT.name, Status.ENCRYPT_OK.name))
        cross.add_bin((Opcode.DECRYPT.name, Status.DECRYPT_OK.name))
        cross.add_bin((Opcode.UNDEFINED.name, Status.ERROR.name))

    def sample_transaction(self, txn: Transaction):
        """Sample a complete transaction"""
        request, response = txn.request, txn.response

        self.sample("opcode", request.opcode.name)
        self.sample("status", response.status.name)
        self.sample("data_class", operand_class(request.data, DATA_WIDTH))
        self.sample("key_class", operand_class(request.key, KEY_WIDTH))

        if txn.timed_out:
            self.sample("outcome", "timed_out")
        elif request.opcode == Opcode.UNDEFINED:
            self.sample("outcome", "immediate")
        else:
            self.sample("outcome", "completed")

        self.sample_cross("opcode_status_cross", (request.opcode.name, response.status.name))
