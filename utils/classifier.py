"""Deterministic keyword extraction and domain classification for requests."""

import re

from config.defaults import DEFAULTS
from config.rules import (
    DEFAULT_DOMAIN,
    DOMAIN_FAMILIES,
    DOMAIN_PREFIX_KEYWORDS,
    STOP_WORDS,
)


def extract_keywords(text, limit=None):
    """Return up to ``limit`` distinct keywords, in order of first appearance.

    Lowercases, strips punctuation, splits on whitespace, then drops stop
    words and tokens of two characters or fewer.
    """
    limit = limit or DEFAULTS["max_keywords"]
    words = re.sub(r"[^a-z0-9\s]", "", text.lower()).split()
    keywords = []
    for word in words:
        if len(word) <= 2 or word in STOP_WORDS or word in keywords:
            continue
        keywords.append(word)
    return keywords[:limit]


def classify_domain(text):
    """Return the first domain family with a keyword hit, else the default."""
    lower = text.lower()
    for domain, keywords in DOMAIN_FAMILIES:
        for keyword in sorted(keywords):
            if keyword in DOMAIN_PREFIX_KEYWORDS:
                pat = r"\b" + re.escape(keyword)
            else:
                pat = r"\b" + re.escape(keyword) + r"\b"
            if re.search(pat, lower):
                return domain
    return DEFAULT_DOMAIN
