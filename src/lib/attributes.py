"""
Directive attribute parsing

Parses the ``{key="value" key='value' key=value flag}`` blocks shared by
container, inline and media directives. Parsing is lenient: anything
that does not look like an attribute is skipped.
"""

import re
from typing import Dict, Optional

ATTRIBUTE_PATTERN = re.compile(
    r"""([A-Za-z_][\w-]*)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'}]+)))?"""
)


def attrs_parse(text: Optional[str]) -> Dict[str, str]:
    """
    Parse a directive attribute string.

    Bare flags map to the empty string; the braces are optional.

    Example:
        >>> attrs_parse('{title="Read me" open}')
        {'title': 'Read me', 'open': ''}
    """
    if not text:
        return {}
    text = text.strip()
    if text.startswith("{") and text.endswith("}"):
        text = text[1:-1]

    attrs: Dict[str, str] = {}
    for match in ATTRIBUTE_PATTERN.finditer(text):
        key = match.group(1)
        value = next((group for group in match.groups()[1:] if group is not None), "")
        attrs[key] = value
    return attrs


def attrsBlock_split(text: str) -> tuple:
    """
    Split a directive opening line remainder into (title, attrs).

    Example:
        >>> attrsBlock_split(' Heads up {open}')
        ('Heads up', {'open': ''})
    """
    match = re.search(r"\{([^}]*)\}\s*$", text)
    if not match:
        return text.strip(), {}
    return text[:match.start()].strip(), attrs_parse(match.group(1))
