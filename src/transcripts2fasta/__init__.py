"""Ensembl transcript FASTA export tool.

Dumps spliced transcript sequences, optionally padded with flanking genomic
sequence, from an Ensembl core database into FASTA.
"""

__version__ = "1.0.0"
__author__ = "Austin P. Morrissey"
