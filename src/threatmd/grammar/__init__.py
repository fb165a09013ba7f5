"""
Document grammars built on the core cursor.
"""

from .threat import MetadataError, Threat, ThreatMetadata, parse_threat

__all__ = ["MetadataError", "Threat", "ThreatMetadata", "parse_threat"]
