#!/usr/bin/env python3

"""
File parsers for GFF3 annotations with an embedded assembly.

Streams feature records from the annotation part of the file and splits
the nucleotide part off into a plain FASTA file.
"""

import logging
from typing import Dict, List, Iterator, Optional
from urllib.parse import unquote

from .data_structures import Feature
from .exceptions import ParseError


class GFFFeatureReader:
    """Stream GFF3 features in file order, stopping at the sequence section."""

    def __init__(self, file_path: str, fasta_directive: str = "##FASTA"):
        self.file_path = file_path
        self.fasta_directive = fasta_directive
        self.line_number = 0
        self.skipped_lines = 0
        self._finished = False

        try:
            self._handle = open(file_path, 'r')
        except OSError as e:
            raise ParseError(f"Cannot open annotation file: {e}", file_path)

    def __enter__(self) -> 'GFFFeatureReader':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __iter__(self) -> Iterator[Feature]:
        while True:
            feature = self.next_feature()
            if feature is None:
                return
            yield feature

    def close(self) -> None:
        """Close the underlying file handle."""
        if not self._handle.closed:
            self._handle.close()

    def next_feature(self) -> Optional[Feature]:
        """Return the next feature, or None once the annotation part is exhausted."""
        if self._finished or self._handle.closed:
            return None

        for line in self._handle:
            self.line_number += 1
            line = line.rstrip('\r\n')

            if line.startswith(self.fasta_directive) or line.startswith('>'):
                break
            if not line.strip() or line.startswith('#'):
                continue

            try:
                return self._parse_line(line)
            except ValueError as e:
                self.skipped_lines += 1
                logging.warning(f"Skipping malformed line {self.line_number} in {self.file_path}: {e}")

        self._finished = True
        return None

    def _parse_line(self, line: str) -> Feature:
        parts = line.split('\t')
        if len(parts) != 9:
            raise ValueError(f"expected 9 columns, found {len(parts)}")

        seq_id, source, feature_type, start, end, score, strand, phase, attributes = parts
        return Feature(
            seq_id=unquote(seq_id),
            source=source,
            primary_tag=feature_type,
            start=int(start),
            end=int(end),
            score=score,
            strand=strand,
            phase=phase,
            attributes=parse_gff3_attributes(attributes)
        )


def parse_gff3_attributes(attr_string: str) -> Dict[str, List[str]]:
    """Parse a GFF3 attribute column into tag -> list of unescaped values."""
    attributes: Dict[str, List[str]] = {}
    for attr in attr_string.strip().split(';'):
        attr = attr.strip()
        if '=' not in attr:
            continue
        key, value = attr.split('=', 1)
        attributes.setdefault(key.strip(), []).extend(
            unquote(v) for v in value.split(',')
        )
    return attributes


def split_embedded_fasta(gff_file: str, output_file: str,
                         fasta_directive: str = "##FASTA") -> int:
    """
    Copy the nucleotide section of an annotation file into its own FASTA file.

    Everything after the first line starting with the directive is copied;
    lines containing the directive are dropped. Without a directive the
    output is empty.

    Returns:
        Number of lines written
    """
    written = 0
    in_fasta = False
    try:
        src = open(gff_file, 'r')
    except OSError as e:
        raise ParseError(f"Cannot open annotation file: {e}", gff_file)

    with src, open(output_file, 'w') as dst:
        for line in src:
            if not in_fasta:
                in_fasta = line.startswith(fasta_directive)
                continue
            if fasta_directive in line:
                continue
            dst.write(line)
            written += 1

    if not in_fasta:
        logging.warning(f"No {fasta_directive} section found in {gff_file}")
    logging.debug(f"Wrote {written} assembly lines from {gff_file} to {output_file}")
    return written
