"""
Extraction Package

Reads documents from disk and returns cleaned text for the chunker.
"""

from docreader.extraction.document_loader import DocumentLoader, load_document

__all__ = ['DocumentLoader', 'load_document']
