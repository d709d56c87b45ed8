#!/usr/bin/env python3

"""
Test suite for the proteome extraction pipeline.

Unit tests for configuration, data structures, parsing, feature selection,
translation and filtering, plus end-to-end runs on small synthetic GFF3
files using the in-process extractor.
"""
