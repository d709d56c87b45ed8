#!/usr/bin/env python3

"""
Command-line interface for proteome extraction.

Extracts one protein FASTA per GFF3 annotation file (with the assembly
embedded after ##FASTA) into an output directory.
"""

import argparse
import sys
import os
import logging

from gff_proteome.core.config import EXTRACTOR_CHOICES, load_config
from gff_proteome.core.exceptions import PipelineError
from gff_proteome.core.pipeline import extract_proteomes


def setup_logging(log_level: str = "INFO") -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        description="Extract protein sequences from GFF3 files with embedded assemblies",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic usage
  gff-proteome --gff sample_1.gff sample_2.gff --output-dir proteomes

  # Mitochondrial code, stricter unknowns filter, four processes
  gff-proteome --gff *.gff --output-dir proteomes --translation-table 4 --max-unknowns 1 --processes 4
        """
    )

    parser.add_argument(
        '--gff',
        required=True,
        nargs='+',
        help='Input GFF3 files, each with the assembly after ##FASTA'
    )
    parser.add_argument(
        '--output-dir',
        required=True,
        help='Output directory for the protein FASTA files'
    )
    parser.add_argument(
        '--config',
        help='Configuration file (JSON or YAML)'
    )

    parser.add_argument(
        '--translation-table',
        type=int,
        help='NCBI genetic code used for translation (default: 11)'
    )
    parser.add_argument(
        '--min-gene-size',
        type=int,
        help='Minimum feature span in nucleotides (default: 120)'
    )
    parser.add_argument(
        '--max-unknowns',
        type=float,
        help='Maximum percentage of unknown residues per protein (default: 5)'
    )
    parser.add_argument(
        '--feature-types',
        help='Comma separated feature types to extract (default: CDS,ncRNA,tRNA,tmRNA,rRNA)'
    )
    parser.add_argument(
        '--extractor',
        choices=EXTRACTOR_CHOICES,
        help='Sequence extraction backend (default: bedtools)'
    )
    parser.add_argument(
        '--processes',
        type=int,
        help='Number of annotation files processed in parallel (default: 1)'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level (default: INFO)'
    )

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    try:
        missing = [path for path in args.gff if not os.path.exists(path)]
        if missing:
            raise FileNotFoundError(f"GFF file(s) not found: {', '.join(missing)}")

        config = load_config(
            config_path=args.config,
            use_env=True,
            translation_table=args.translation_table,
            min_gene_size_in_nucleotides=args.min_gene_size,
            maximum_percentage_of_unknowns=args.max_unknowns,
            feature_types=args.feature_types,
            extractor=args.extractor,
            parallel_workers=args.processes
        )
        if config.debug_mode:
            logging.getLogger().setLevel(logging.DEBUG)

        logger.info(f"Extracting proteomes from {len(args.gff)} annotation file(s)")
        logger.info(f"Output directory: {args.output_dir}")
        logger.info(f"Translation table: {config.translation_table}")
        logger.info(f"Min gene size: {config.min_gene_size_in_nucleotides}")
        logger.info(f"Max unknowns: {config.maximum_percentage_of_unknowns}%")

        results = extract_proteomes(args.gff, args.output_dir, config)

        for gff_file, fasta_file in results.items():
            logger.info(f"{gff_file} -> {fasta_file}")

        if len(results) < len(args.gff):
            logger.error(f"Failed to process {len(args.gff) - len(results)} of {len(args.gff)} file(s)")
            return 1

        logger.info("Proteome extraction completed successfully!")
        return 0

    except FileNotFoundError as e:
        logger.error(f"File error: {e}")
        return 1
    except PipelineError as e:
        logger.error(f"Pipeline error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
