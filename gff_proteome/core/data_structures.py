#!/usr/bin/env python3

"""
Core data structures for the proteome extraction pipeline.

Defines the annotation feature record read from GFF3 and the half-open
interval handed to the extraction tool.
"""

from dataclasses import dataclass, field
from typing import Dict, List

STRAND_SYMBOLS = ('+', '-', '.', '?')


@dataclass
class Feature:
    """One GFF3 feature line. Coordinates are 1-based and inclusive."""
    seq_id: str
    primary_tag: str
    start: int
    end: int
    strand: str = '+'
    source: str = "."
    score: str = "."
    phase: str = "."
    attributes: Dict[str, List[str]] = field(default_factory=dict)

    def __post_init__(self):
        """Validate feature data after initialization."""
        if self.end < self.start:
            raise ValueError(f"Invalid feature coordinates: {self.start}-{self.end}")
        if self.strand not in STRAND_SYMBOLS:
            raise ValueError(f"Invalid strand: {self.strand}")

    @property
    def length(self) -> int:
        """Get feature length in nucleotides."""
        return self.end - self.start + 1

    @property
    def is_forward(self) -> bool:
        return self.strand == '+'

    def has_tag(self, tag: str) -> bool:
        """Check if the feature carries an attribute."""
        return tag in self.attributes

    def get_tag_values(self, tag: str) -> List[str]:
        """Get all values of an attribute (empty list if absent)."""
        return list(self.attributes.get(tag, []))


@dataclass(frozen=True)
class Interval:
    """A 0-based, half-open region in BED6 layout."""
    seq_id: str
    start0: int
    end: int
    name: str
    score: int = 1
    strand: str = '+'

    def __post_init__(self):
        """Validate interval data after initialization."""
        if self.start0 >= self.end:
            raise ValueError(f"Invalid interval coordinates: {self.start0}-{self.end}")
        if self.strand not in ('+', '-'):
            raise ValueError(f"Invalid strand: {self.strand}")

    @classmethod
    def from_feature(cls, feature: Feature, name: str) -> 'Interval':
        """Convert a 1-based inclusive feature into a BED interval."""
        # Anything not explicitly forward is read from the reverse strand
        strand = '+' if feature.is_forward else '-'
        return cls(
            seq_id=feature.seq_id,
            start0=feature.start - 1,
            end=feature.end,
            name=name,
            strand=strand
        )

    @classmethod
    def from_bed_line(cls, line: str) -> 'Interval':
        """Parse a BED6 line."""
        parts = line.rstrip('\n').split('\t')
        if len(parts) < 6:
            raise ValueError(f"Expected 6 BED columns, found {len(parts)}")
        seq_id, start0, end, name, score, strand = parts[:6]
        return cls(
            seq_id=seq_id,
            start0=int(start0),
            end=int(end),
            name=name,
            score=int(score),
            strand=strand
        )

    @property
    def length(self) -> int:
        return self.end - self.start0

    def to_bed_line(self) -> str:
        """Format as a tab-separated BED6 line (no newline)."""
        return "\t".join([self.seq_id, str(self.start0), str(self.end),
                          self.name, str(self.score), self.strand])
