"""Canonical form of person and company names for fuzzy comparison."""

import re
import unicodedata

HONORIFICS = ("mme", "mlle", "m", "mr", "mrs", "ms", "dr", "prof")

BUSINESS_SUFFIXES = ("sarl", "sas", "sa", "eurl", "sci", "scop", "gie", "snc", "sca", "sem")

_HONORIFIC_RE = re.compile(r"\b(?:%s)\b\.?" % "|".join(HONORIFICS))
_SUFFIX_RE = re.compile(r"\b(?:%s)\b" % "|".join(BUSINESS_SUFFIXES))
_WHITESPACE_RE = re.compile(r"\s+")


def strip_accents(value: str) -> str:
    """Remove diacritics using NFD decomposition."""
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_name(name: str) -> str:
    """
    Normalize a name for comparison.

    Lowercases, strips accents, drops honorifics ("M.", "Mme", "Dr"...) and
    company legal forms ("SARL", "SAS"...) as whole words, then collapses
    whitespace.

    Example:
        >>> normalize_name("Mme Hélène  Lefèvre")
        'helene lefevre'
    """
    if not name:
        return ""

    normalized = strip_accents(name.lower())
    normalized = _HONORIFIC_RE.sub(" ", normalized)
    normalized = _SUFFIX_RE.sub(" ", normalized)
    return _WHITESPACE_RE.sub(" ", normalized).strip()
