"""Sequence Matrix import pipeline.

Loads multi-sequence files into a taxon-by-set matrix, splitting each file
by the character sets it declares.
"""

__version__ = "1.0.0"
__author__ = "Austin P. Morrissey"
