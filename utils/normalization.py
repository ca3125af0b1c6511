"""
Free-text Normalization

Ingredient, tag and exclusion lists are stored as comma-separated free text.
These helpers turn them into lowercase term lists in one place so the
matcher, the AI exclusion check and the models all compare the same tokens.
"""

import re

_TAG_SEPARATORS = re.compile(r'[\s\-]+')


def parse_list(value):
    """
    Split comma-separated text into trimmed lowercase entries.

    Accepts a string, an iterable of strings, or None. Empty entries are
    dropped and input order is preserved.

    Examples:
        "latte, Pane ,Tonno" -> ["latte", "pane", "tonno"]
    """
    if not value:
        return []

    if isinstance(value, str):
        parts = value.split(',')
    else:
        parts = []
        for item in value:
            if item is None:
                continue
            parts.extend(str(item).split(','))

    return [p.strip().lower() for p in parts if p and p.strip()]


def normalize_tag(tag):
    """Lowercase a tag and join its words with underscores ('High Satiety' -> 'high_satiety')."""
    return _TAG_SEPARATORS.sub('_', tag.strip().lower()).strip('_')


def normalize_tags(value):
    """Normalize a tag list, dropping duplicates while keeping first-seen order."""
    seen = set()
    tags = []
    for entry in parse_list(value):
        tag = normalize_tag(entry)
        if tag and tag not in seen:
            seen.add(tag)
            tags.append(tag)
    return tags


def join_list(values):
    """Store a list back as comma-separated text."""
    if not values:
        return ''
    if isinstance(values, str):
        return values
    return ', '.join(str(v).strip() for v in values if v is not None and str(v).strip())


def find_excluded(ingredients, excluded):
    """
    Return the first excluded term contained in any ingredient entry.

    Matching is a case-insensitive substring test, so an excluded term of
    'nut' catches 'walnuts'. Returns None when nothing matches.
    """
    excluded_terms = parse_list(excluded)
    if not excluded_terms:
        return None

    ingredient_terms = parse_list(ingredients)
    for term in excluded_terms:
        for ingredient in ingredient_terms:
            if term in ingredient:
                return term
    return None
