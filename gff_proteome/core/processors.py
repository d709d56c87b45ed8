#!/usr/bin/env python3

"""
Processing classes for feature selection, BED export, translation and
unknown-residue filtering.
"""

import os
import re
import logging
from typing import Iterable, Iterator, Optional, Sequence

from Bio import SeqIO
from Bio.Data.CodonTable import TranslationError
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from .data_structures import Feature, Interval
from .exceptions import SequenceError

UNKNOWN_RESIDUE = 'X'

# Suffixes bedtools getfasta appends to -name headers
_LOCATION_SUFFIX = re.compile(r"::[^:]+:\d+-\d+(\([+\-.]\))?$")
_STRAND_SUFFIX = re.compile(r"\([+\-.]\)$")


class FeatureSelector:
    """Pick coding/RNA features from an annotation stream and turn them into intervals."""

    def __init__(self, feature_types: Sequence[str], min_gene_size: int, id_tag: str = "ID"):
        self.feature_types = tuple(feature_types)
        self.min_gene_size = min_gene_size
        self.id_tag = id_tag
        self.type_pattern = re.compile("|".join(re.escape(t) for t in self.feature_types))
        self.selected = 0
        self.skipped = 0

    def select(self, features: Iterable[Optional[Feature]]) -> Iterator[Interval]:
        """Yield one interval per accepted feature, in input order."""
        for feature in features:
            if feature is None:
                continue

            identifier = self.accept(feature)
            if identifier is None:
                self.skipped += 1
                continue

            self.selected += 1
            yield Interval.from_feature(feature, identifier)

    def accept(self, feature: Feature) -> Optional[str]:
        """Return the cleaned identifier if the feature qualifies, else None."""
        if not self.type_pattern.search(feature.primary_tag):
            return None

        if not feature.has_tag(self.id_tag):
            return None

        # Filter out small genes
        if feature.end - feature.start < self.min_gene_size:
            logging.debug(f"Skipping short {feature.primary_tag} at {feature.seq_id}:{feature.start}-{feature.end}")
            return None

        values = feature.get_tag_values(self.id_tag)
        identifier = strip_quotes(values[0]) if values else ""
        if not identifier:
            logging.debug(f"Skipping {feature.primary_tag} at {feature.seq_id}:{feature.start} with empty {self.id_tag}")
            return None

        return identifier


def strip_quotes(value: str) -> str:
    return value.replace('"', '').replace("'", '')


class IntervalExporter:
    """Write intervals as BED6."""

    def write(self, intervals: Iterable[Interval], path: str) -> int:
        count = 0
        with open(path, 'w') as bed:
            for interval in intervals:
                bed.write(interval.to_bed_line() + "\n")
                count += 1
        logging.info(f"Wrote {count} intervals to {path}")
        return count


class ProteinTranslator:
    """Translate extracted nucleotide records into proteins."""

    def __init__(self, translation_table: int = 11):
        self.translation_table = translation_table
        self.failed = 0

    def translate_record(self, record: SeqRecord) -> SeqRecord:
        """
        Translate one nucleotide record.

        A trailing partial codon is ignored; stop codons, the terminal one
        included, are kept as *. Ambiguous codons become X.

        Raises:
            SequenceError: if the sequence cannot be translated
        """
        name = record_name(record.id)
        usable = len(record.seq) - len(record.seq) % 3

        try:
            protein = str(record.seq[:usable].translate(table=self.translation_table))
        except TranslationError as e:
            raise SequenceError(str(e), name, "nucleotide")

        return SeqRecord(Seq(protein), id=name, name=name, description="")

    def translate_file(self, input_file: str, output_file: str) -> int:
        """Translate every record of a FASTA file; returns the number written."""
        if not os.path.exists(input_file):
            logging.warning(f"No extracted nucleotide sequences found at {input_file}")
            return 0

        def proteins():
            for record in SeqIO.parse(input_file, "fasta"):
                record.description = ""
                try:
                    yield self.translate_record(record)
                except SequenceError as e:
                    self.failed += 1
                    logging.warning(f"Skipping untranslatable record: {e}")

        count = SeqIO.write(proteins(), output_file, "fasta")
        logging.info(f"Translated {count} sequences with table {self.translation_table}")
        return count


def record_name(record_id: str) -> str:
    """Recover the interval name from an extracted FASTA header."""
    return _STRAND_SUFFIX.sub("", _LOCATION_SUFFIX.sub("", record_id))


def clean_fasta_headers(infile: str, outfile: str) -> bool:
    """Copy a FASTA file, removing double quotes from header lines."""
    if not os.path.exists(infile):
        return False

    with open(infile, 'r') as src, open(outfile, 'w') as dst:
        for line in src:
            if line.startswith('>'):
                line = line.replace('"', '')
            dst.write(line)
    return True


class UnknownResidueFilter:
    """Drop proteins carrying too many unknown residues."""

    def __init__(self, maximum_percentage_of_unknowns: float = 5.0):
        self.maximum_percentage_of_unknowns = maximum_percentage_of_unknowns
        self.kept = 0
        self.discarded = 0

    def max_allowed(self, length: int) -> int:
        """Largest number of unknowns tolerated in a protein of this length."""
        return int(length * self.maximum_percentage_of_unknowns / 100)

    def has_too_many_unknowns(self, record: SeqRecord) -> bool:
        return str(record.seq).count(UNKNOWN_RESIDUE) > self.max_allowed(len(record.seq))

    def filter_file(self, filename: str, source_name: str = "") -> int:
        """
        Filter a protein FASTA in place.

        Survivors go to a temporary file that then replaces the original.
        A missing input counts as empty. Returns the number kept.
        """
        temp_output_file = filename + '.tmp.filtered.fa'

        def survivors():
            if not os.path.exists(filename):
                return
            for record in SeqIO.parse(filename, "fasta"):
                if self.has_too_many_unknowns(record):
                    self.discarded += 1
                    logging.debug(f"Discarding {record.id}: too many unknown residues")
                    continue
                record.description = ""
                self.kept += 1
                yield record

        count = SeqIO.write(survivors(), temp_output_file, "fasta")

        if count == 0:
            logging.error(f"Could not extract any protein sequences from {source_name or filename}. "
                          f"Does the file contain the assembly as well as the annotation?")

        # Replace the original file
        os.replace(temp_output_file, filename)
        return count
