#!/usr/bin/env python3

"""
Main pipeline class for extracting a proteome from a GFF3 file with an
embedded assembly.

Stages run strictly in order and hand over through files in a private
working directory:

    features -> BED -> nucleotide FASTA -> protein FASTA -> filtered proteins
"""

import os
import shutil
import logging
import tempfile
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Dict, List, Optional

from .config import PipelineConfig
from .exceptions import PipelineError, ParseError
from .extractors import IntervalExtractor, SequenceExtractor, get_extractor
from .parsers import GFFFeatureReader
from .processors import (FeatureSelector, IntervalExporter, ProteinTranslator,
                         UnknownResidueFilter, clean_fasta_headers)
from ..utils.performance_monitor import PerformanceMonitor


class ProteomeExtractionPipeline:
    """
    Turn one annotation file into a protein FASTA.

    Example:
        pipeline = ProteomeExtractionPipeline("sample.gff")
        faa = pipeline.fasta_file   # runs once, cached afterwards

    The output lives in a temporary working directory owned by the instance
    and disappears with it; copy it elsewhere to keep it.
    """

    def __init__(self, gff_file: str, config: Optional[PipelineConfig] = None,
                 extractor: Optional[IntervalExtractor] = None):
        self.gff_file = gff_file
        self.config = config or PipelineConfig()

        if not os.path.isfile(gff_file) or not os.access(gff_file, os.R_OK):
            raise ParseError("Annotation file not found or not readable", gff_file)

        self.extractor = extractor or get_extractor(self.config)
        self.monitor = PerformanceMonitor(enabled=self.config.enable_performance_monitoring)

        parent = self.config.working_directory_parent or os.getcwd()
        self._working_directory = tempfile.TemporaryDirectory(dir=parent)
        self._output_filename: Optional[str] = None
        self._fasta_file: Optional[str] = None

    def __enter__(self) -> 'ProteomeExtractionPipeline':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        """Remove the working directory and everything in it."""
        self._working_directory.cleanup()

    @property
    def working_directory_name(self) -> str:
        return self._working_directory.name

    @property
    def output_filename(self) -> str:
        """Path of the final protein FASTA, derived from the annotation file name."""
        if self._output_filename is None:
            stem = os.path.splitext(os.path.basename(self.gff_file))[0]
            self._output_filename = os.path.join(self.working_directory_name, stem + '.faa')
        return self._output_filename

    @property
    def fasta_file(self) -> str:
        """Run the pipeline on first access and return the protein FASTA path."""
        if self._fasta_file is None:
            logging.info(f"Extracting proteins from {self.gff_file}")
            self.extract_nucleotide_regions()
            self.convert_nucleotide_to_protein()
            self.cleanup_fasta()
            self.cleanup_intermediate_files()
            self.filter_fasta_sequences(self.output_filename)
            self.monitor.log_report()
            self._fasta_file = self.output_filename
        return self._fasta_file

    def run(self) -> str:
        return self.fasta_file

    # Intermediate files

    def _intermediate(self, suffix: str) -> str:
        return '.'.join((self.output_filename, suffix))

    @property
    def bed_output_filename(self) -> str:
        return self._intermediate('intermediate.bed')

    @property
    def nucleotide_fasta_filename(self) -> str:
        return self._intermediate('intermediate.fa')

    @property
    def extracted_nucleotide_fasta_filename(self) -> str:
        return self._intermediate('intermediate.extracted.fa')

    @property
    def fastatranslate_filename(self) -> str:
        return self._intermediate('intermediate.translate.fa')

    @property
    def unfiltered_output_filename(self) -> str:
        return self._intermediate('unfiltered.fa')

    # Stages

    def create_bed_file_from_gff(self) -> int:
        """Select features and write them as BED intervals."""
        with self.monitor.stage("feature_selection") as metrics:
            selector = FeatureSelector(
                self.config.feature_types,
                self.config.min_gene_size_in_nucleotides,
                self.config.id_tag
            )
            with GFFFeatureReader(self.gff_file, self.config.fasta_directive) as reader:
                count = IntervalExporter().write(selector.select(reader), self.bed_output_filename)

            metrics.items = count
            logging.info(f"Selected {selector.selected} features, skipped {selector.skipped}")
        return count

    def extract_nucleotide_regions(self) -> str:
        """Write the BED file and extract the nucleotide sequence of every interval."""
        self.create_bed_file_from_gff()

        with self.monitor.stage("sequence_extraction"):
            SequenceExtractor(self.extractor, self.config.fasta_directive).run(
                self.gff_file,
                self.bed_output_filename,
                self.nucleotide_fasta_filename,
                self.extracted_nucleotide_fasta_filename
            )
        return self.extracted_nucleotide_fasta_filename

    def convert_nucleotide_to_protein(self) -> int:
        """Translate the extracted nucleotides into the unfiltered protein file."""
        with self.monitor.stage("translation") as metrics:
            translator = ProteinTranslator(self.config.translation_table)
            count = translator.translate_file(self.extracted_nucleotide_fasta_filename,
                                              self.unfiltered_output_filename)
            metrics.items = count

        if os.path.exists(self.extracted_nucleotide_fasta_filename):
            os.remove(self.extracted_nucleotide_fasta_filename)
        return count

    def cleanup_fasta(self) -> bool:
        """Strip quotes from protein headers into the output file."""
        return clean_fasta_headers(self.unfiltered_output_filename, self.output_filename)

    def cleanup_intermediate_files(self) -> None:
        for path in (self.unfiltered_output_filename, self.fastatranslate_filename):
            if os.path.exists(path):
                os.remove(path)

    def filter_fasta_sequences(self, filename: str) -> int:
        """Drop proteins with too many unknown residues, replacing the file in place."""
        with self.monitor.stage("unknowns_filter") as metrics:
            residue_filter = UnknownResidueFilter(self.config.maximum_percentage_of_unknowns)
            count = residue_filter.filter_file(filename, self.gff_file)
            metrics.items = count
            logging.info(f"Kept {residue_filter.kept} proteins, "
                         f"discarded {residue_filter.discarded} with too many unknowns")
        return count


def _extract_single(gff_file: str, output_dir: str, config: PipelineConfig) -> str:
    with ProteomeExtractionPipeline(gff_file, config) as pipeline:
        target = os.path.join(output_dir, os.path.basename(pipeline.output_filename))
        shutil.copyfile(pipeline.fasta_file, target)
    return target


def extract_proteomes(gff_files: List[str], output_dir: str,
                      config: Optional[PipelineConfig] = None) -> Dict[str, str]:
    """
    Extract proteomes from several annotation files.

    Each file gets its own pipeline and working directory; with more than
    one worker they run in separate processes. Files that fail are logged
    and left out of the result.

    Args:
        gff_files: Annotation files
        output_dir: Directory receiving one .faa per input
        config: Shared configuration

    Returns:
        Mapping of annotation file to protein FASTA path
    """
    config = config or PipelineConfig()
    os.makedirs(output_dir, exist_ok=True)
    results: Dict[str, str] = {}

    if config.parallel_workers == 1 or len(gff_files) <= 1:
        for gff_file in gff_files:
            try:
                results[gff_file] = _extract_single(gff_file, output_dir, config)
            except (PipelineError, OSError) as e:
                logging.error(f"Failed to extract proteins from {gff_file}: {e}")
        return results

    with ProcessPoolExecutor(max_workers=config.parallel_workers) as executor:
        futures = {
            executor.submit(_extract_single, gff_file, output_dir, config): gff_file
            for gff_file in gff_files
        }
        for future in as_completed(futures):
            gff_file = futures[future]
            try:
                results[gff_file] = future.result()
            except (PipelineError, OSError) as e:
                logging.error(f"Failed to extract proteins from {gff_file}: {e}")

    return results
