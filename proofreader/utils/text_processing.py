"""
Text Processing Utilities
=========================
Functions for cleaning and parsing AI responses.
"""
import re
import json
from typing import Any, List, Optional
from proofreader.utils.logging import debug_print


def is_blank(text: Optional[str]) -> bool:
    """True for None, empty or whitespace-only text."""
    return not text or not text.strip()


def clean_model_response(response: str) -> str:
    """
    Clean a free-text model response.
    Removes thinking tags, code fences, translation preambles and wrapping quotes.

    Args:
        response: Raw text returned by the model

    Returns:
        Cleaned text
    """
    if not response:
        return ""

    original_len = len(response)
    text = response.strip()

    # Reasoning models sometimes leak their scratchpad
    text = re.sub(r'<think>.*?</think>', '', text, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r'<thinking>.*?</thinking>', '', text, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r'<think>.*$', '', text, flags=re.DOTALL | re.IGNORECASE)
    text = text.strip()

    unwanted_patterns = [
        r'^\s*Here is the translation:?\s*\n*',
        r'^\s*Here\'s the translation:?\s*\n*',
        r'^\s*Translation:?\s*\n*',
        r'^\s*Translated text:?\s*\n*',
        r'^\s*\*\*Translation:?\*\*\s*\n*',
        r'^\s*```[a-z]*\s*\n*',
        r'\s*```\s*$',
    ]
    for pattern in unwanted_patterns:
        text = re.sub(pattern, '', text, flags=re.IGNORECASE)

    text = text.strip()

    if len(text) > 2:
        for opening, closing in (('"', '"'), ("'", "'"), ('«', '»'), ('“', '”')):
            if text.startswith(opening) and text.endswith(closing):
                text = text[1:-1].strip()
                break

    if len(text) != original_len:
        debug_print(f"Removed {original_len - len(text)} chars from model reply", "DEBUG", "TEXT")

    return text


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ``` or ```json fence."""
    if not text:
        return ""
    text = text.strip()
    match = re.match(r'^```[a-zA-Z]*\s*\n?(.*?)\n?```$', text, flags=re.DOTALL)
    if match:
        return match.group(1).strip()
    return text


def extract_json(text: str) -> Optional[Any]:
    """
    Parse JSON from a model response.

    Accepts bare JSON or JSON wrapped in a code fence. Returns None when the
    text is not valid JSON.
    """
    candidate = strip_code_fences(text)
    if not candidate:
        return None
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    # Fall back to the outermost object/array inside surrounding prose
    for opening, closing in (('{', '}'), ('[', ']')):
        start = candidate.find(opening)
        end = candidate.rfind(closing)
        if start != -1 and end > start:
            try:
                return json.loads(candidate[start:end + 1])
            except json.JSONDecodeError:
                continue
    return None


def parse_markdown_table(markdown: str) -> List[List[str]]:
    """
    Parse the body rows of a Markdown table.

    The first table row is treated as the header and dropped, separator rows
    (``|---|---|``) are skipped.

    Returns:
        List of rows, each a list of stripped cell values
    """
    if not markdown or '|' not in markdown:
        return []

    rows = [
        row for row in markdown.strip().split('\n')
        if '|' in row and not re.match(r'^\s*\|?\s*:?-{3,}', row)
    ]
    table = [
        [cell.strip() for cell in row.split('|') if cell.strip() != '']
        for row in rows
    ]
    table = [row for row in table if row]
    return table[1:]
