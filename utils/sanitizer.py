"""
Input Sanitization Module

Cleans user input and externally sourced recipe data (Edamam hits, AI
generated recipes) before it is stored. Output is served as JSON, so text is
stripped of markup and control characters rather than HTML-escaped.
"""

import html
import re
from urllib.parse import urlparse

from constants import MAX_LENGTHS

_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]')
_TAGS = re.compile(r'<[^>]*>')


def sanitize_text(text, max_length=10000):
    """
    Sanitize free text.

    Removes HTML tags and control characters, unescapes entities, strips
    surrounding whitespace and truncates.

    Args:
        text: The text to sanitize (can be None)
        max_length: Maximum allowed length (default 10000)

    Returns:
        Sanitized string, truncated if necessary
    """
    if text is None:
        return ''

    if not isinstance(text, str):
        text = str(text)

    text = _TAGS.sub('', text)
    text = html.unescape(text)
    text = _CONTROL_CHARS.sub('', text)
    text = text.strip()

    if len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_url(url):
    """
    Sanitize a URL by rejecting dangerous schemes.

    Only http and https URLs with a host are kept.

    Args:
        url: The URL to validate (can be None)

    Returns:
        The URL if safe, empty string if unsafe or invalid
    """
    if not url or not isinstance(url, str):
        return ''

    url = url.strip()
    if len(url) > MAX_LENGTHS['source_url']:
        return ''

    try:
        parsed = urlparse(url)
    except ValueError:
        return ''

    if parsed.scheme.lower() not in ('http', 'https') or not parsed.netloc:
        return ''

    return url


def sanitize_recipe_name(name, max_length=MAX_LENGTHS['recipe_title'], default='Imported Recipe'):
    """
    Sanitize a recipe title for storage.

    Args:
        name: The recipe title to sanitize
        max_length: Maximum allowed length
        default: Returned when nothing is left after cleaning

    Returns:
        Sanitized recipe title
    """
    name = sanitize_text(name, max_length=10 * max_length)

    # Collapse multiple spaces
    name = re.sub(r'\s+', ' ', name)

    if len(name) > max_length:
        name = name[:max_length - 3] + '...'

    return name or default


def sanitize_instructions(instructions, max_length=MAX_LENGTHS['instructions']):
    """
    Sanitize recipe instructions.

    Preserves newlines for formatting.
    """
    instructions = sanitize_text(instructions, max_length=max_length + 1)
    if len(instructions) > max_length:
        instructions = instructions[:max_length] + '\n...(truncated)'
    return instructions


def sanitize_ingredient_text(text, max_length=500):
    """
    Sanitize a single ingredient line.

    Newlines are flattened so a line stays one entry of the ingredient list.
    """
    text = sanitize_text(text, max_length=max_length)
    return re.sub(r'\s+', ' ', text)
