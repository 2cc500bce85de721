"""Module containing the query string parser."""
import re
from typing import Dict, List, Optional
from urllib.parse import unquote_to_bytes

from .exceptions import ConversionError

_BAD_ESCAPE = re.compile(r'%(?![0-9A-Fa-f]{2})')


def _decode(component: str) -> str:
    """Percent-decode a single key or value.

    :param component: str, encoded key or value.
    :raise ConversionError: if the escape sequences are malformed.
    :return: str, decoded text.
    """
    if _BAD_ESCAPE.search(component):
        raise ConversionError(f"Malformed percent-encoding in {component!r}")
    try:
        return unquote_to_bytes(component.replace('+', ' ')).decode('utf-8')
    except UnicodeDecodeError as e:
        raise ConversionError(f"Cannot decode {component!r}: {str(e)}") from e


def parse_query_string(query: Optional[str]) -> Dict[str, List[str]]:
    """Extract the parameters from a query string such as ``a=1&b=2``.

    The same key may appear several times; its values are kept in the
    order they were encountered.

    :param query: Optional[str], raw query string without the leading ``?``.
    :raise ConversionError: if any key or value cannot be decoded.
    :return: Dict[str, List[str]], decoded key to list of decoded values.
    """
    parameters: Dict[str, List[str]] = {}
    if not query:
        return parameters

    for segment in query.split('&'):
        if not segment:
            continue
        key, sep, value = segment.partition('=')
        parameters.setdefault(_decode(key), []).append(_decode(value) if sep else '')

    return parameters
