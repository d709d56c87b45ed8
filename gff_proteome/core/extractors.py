#!/usr/bin/env python3

"""
Interval extraction: pull strand-oriented nucleotide sequences for BED
intervals out of the assembly embedded in an annotation file.

Two interchangeable backends are provided: the bedtools getfasta command
line tool and an in-process pyfaidx implementation.
"""

import os
import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Iterator, List

import pyfaidx
from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from .config import PipelineConfig
from .data_structures import Interval
from .exceptions import ExtractionError
from .parsers import split_embedded_fasta


class IntervalExtractor(ABC):
    """Extract one nucleotide record per BED interval, named by the interval name."""

    @abstractmethod
    def extract(self, reference: str, intervals: str, output: str,
                strand_aware: bool = True) -> str:
        """
        Args:
            reference: FASTA file holding the assembly
            intervals: BED6 file
            output: FASTA file to create
            strand_aware: reverse-complement intervals on the '-' strand

        Returns:
            Path of the output file
        """


class BedtoolsExtractor(IntervalExtractor):
    """Run `bedtools getfasta`. Failures are logged, not raised, unless check=True."""

    def __init__(self, executable: str = "bedtools", check: bool = False):
        self.executable = executable
        self.check = check

    def build_command(self, reference: str, intervals: str, output: str,
                      strand_aware: bool = True) -> List[str]:
        cmd_list = [self.executable, "getfasta"]
        if strand_aware:
            cmd_list.append("-s")
        cmd_list.extend(["-fi", reference, "-bed", intervals, "-fo", output, "-name"])
        return cmd_list

    def extract(self, reference: str, intervals: str, output: str,
                strand_aware: bool = True) -> str:
        cmd_list = self.build_command(reference, intervals, output, strand_aware)
        logging.debug(" ".join(cmd_list))

        try:
            result = subprocess.run(cmd_list, capture_output=True)
        except OSError as e:
            logging.error(f"Could not run {self.executable}: {e}")
            if self.check:
                raise ExtractionError(str(e), self.executable)
            return output

        if result.returncode != 0:
            stderr = result.stderr.decode(errors='replace').strip()
            logging.warning(f"{self.executable} getfasta exited with {result.returncode}: {stderr}")
            if self.check:
                raise ExtractionError(stderr, self.executable, result.returncode)
        elif result.stderr:
            logging.debug(result.stderr.decode(errors='replace'))

        return output


class FaidxExtractor(IntervalExtractor):
    """Extract intervals in-process with pyfaidx."""

    def extract(self, reference: str, intervals: str, output: str,
                strand_aware: bool = True) -> str:
        if not os.path.exists(reference) or os.path.getsize(reference) == 0:
            logging.warning(f"Reference {reference} is empty, nothing to extract")
            SeqIO.write([], output, "fasta")
            return output

        try:
            genome = pyfaidx.Fasta(reference, as_raw=False, sequence_always_upper=False)
        except pyfaidx.FastaIndexingError as e:
            logging.error(f"Could not index reference {reference}: {e}")
            SeqIO.write([], output, "fasta")
            return output

        with genome:
            count = SeqIO.write(self._records(genome, intervals, strand_aware), output, "fasta")

        logging.info(f"Extracted {count} nucleotide sequences from {reference}")
        return output

    def _records(self, genome: 'pyfaidx.Fasta', intervals: str,
                 strand_aware: bool) -> Iterator[SeqRecord]:
        with open(intervals, 'r') as bed:
            for line_num, line in enumerate(bed, 1):
                if not line.strip():
                    continue
                try:
                    interval = Interval.from_bed_line(line)
                except ValueError as e:
                    logging.warning(f"Skipping BED line {line_num} in {intervals}: {e}")
                    continue

                if interval.seq_id not in genome:
                    logging.warning(f"Sequence {interval.seq_id} not found in reference, skipping {interval.name}")
                    continue

                contig = genome[interval.seq_id]
                if interval.end > len(contig):
                    logging.warning(f"Interval {interval.name} ends beyond {interval.seq_id} "
                                    f"({interval.end} > {len(contig)}), skipping")
                    continue

                region = contig[interval.start0:interval.end]
                if strand_aware and interval.strand == '-':
                    region = region.reverse.complement

                yield SeqRecord(Seq(region.seq), id=interval.name, description="")


def get_extractor(config: PipelineConfig) -> IntervalExtractor:
    """Build the extractor named in the configuration."""
    if config.extractor == "faidx":
        return FaidxExtractor()
    return BedtoolsExtractor(config.bedtools_exe)


class SequenceExtractor:
    """Split the assembly out of an annotation file and extract BED intervals from it."""

    def __init__(self, extractor: IntervalExtractor, fasta_directive: str = "##FASTA"):
        self.extractor = extractor
        self.fasta_directive = fasta_directive

    def run(self, gff_file: str, bed_file: str, reference_file: str, output_file: str) -> str:
        split_embedded_fasta(gff_file, reference_file, self.fasta_directive)
        self.extractor.extract(reference_file, bed_file, output_file, strand_aware=True)

        for path in (reference_file, reference_file + '.fai', bed_file):
            if os.path.exists(path):
                os.remove(path)

        return output_file
