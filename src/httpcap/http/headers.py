"""
=============================================================================
HEADER VALUE DECOMPOSITION
=============================================================================

Many HTTP header values are not opaque strings but lists of ELEMENTS, each
with optional PARAMETERS:

    Accept: text/html, application/xml;q=0.9, */*;q=0.8
            ───┬───── ──────────┬────────── ─────┬────
               │                │                │
           element 0        element 1        element 2
                                │
                    name="application/xml"
                    value=None
                    parameters=[q=0.9]

=============================================================================
GRAMMAR
=============================================================================

    header-value  = element *( "," element )
    element       = name [ "=" value ] *( ";" parameter )
    parameter     = name [ "=" value ]
    value         = token / quoted-string

Rules that matter for reproducing existing traces byte for byte:

    - Delimiters inside a quoted string do not count; a backslash inside
      quotes escapes the next character (the backslash is kept).
    - Names and values are trimmed of spaces, tabs, CR and LF.
    - One pair of surrounding double quotes is stripped from a value.
    - An element with an empty name and no value ("a,,b") is dropped;
      empty parameters are kept.
    - A name with no "=" has value None, which is different from "x="
      (value "").

=============================================================================
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple


_WHITESPACE = " \t\r\n"
_ELEMENT_DELIMITER = ","
_PARAM_DELIMITER = ";"
_DELIMITERS = _PARAM_DELIMITER + _ELEMENT_DELIMITER


@dataclass(frozen=True)
class NameValuePair:
    """A name with an optional value (None when there was no "=")."""
    name: str
    value: Optional[str] = None

    def __str__(self) -> str:
        if self.value is None:
            return self.name
        return f"{self.name}={self.value}"


@dataclass(frozen=True)
class HeaderElement:
    """One comma-separated element of a header value."""
    name: str
    value: Optional[str] = None
    parameters: Tuple[NameValuePair, ...] = ()

    def get_parameter(self, name: str) -> Optional[NameValuePair]:
        """Find a parameter by name (case-insensitive)."""
        wanted = name.lower()
        for param in self.parameters:
            if param.name.lower() == wanted:
                return param
        return None


@dataclass(frozen=True)
class Header:
    """
    A single request header exactly as received.

    The name keeps its original case; lookups elsewhere compare
    case-insensitively (RFC 7230 section 3.2).
    """
    name: str
    value: str = ""

    @property
    def elements(self) -> List[HeaderElement]:
        """The value decomposed into elements and parameters."""
        return parse_elements(self.value)

    def __str__(self) -> str:
        return f"{self.name}: {self.value}"


def parse_elements(value: Optional[str]) -> List[HeaderElement]:
    """
    Split a header value into elements.

    Args:
        value: Raw header value (None or "" gives an empty list).

    Returns:
        Elements in the order they appear.

    Example:
        >>> parse_elements("a=1; b=2")
        [HeaderElement(name='a', value='1', parameters=(NameValuePair(name='b', value='2'),))]
    """
    elements: List[HeaderElement] = []
    if not value:
        return elements

    pos = 0
    while pos < len(value):
        element, pos = _parse_element(value, pos)
        if element.name or element.value is not None:
            elements.append(element)
    return elements


def _parse_element(text: str, pos: int) -> Tuple[HeaderElement, int]:
    pair, pos, delimiter = _parse_pair(text, pos)
    parameters: Tuple[NameValuePair, ...] = ()
    if delimiter == _PARAM_DELIMITER:
        parameters, pos = _parse_parameters(text, pos)
    return HeaderElement(pair.name, pair.value, parameters), pos


def _parse_parameters(text: str, pos: int) -> Tuple[Tuple[NameValuePair, ...], int]:
    params: List[NameValuePair] = []
    while pos < len(text) and text[pos] in _WHITESPACE:
        pos += 1
    while pos < len(text):
        pair, pos, delimiter = _parse_pair(text, pos)
        params.append(pair)
        if delimiter == _ELEMENT_DELIMITER:
            break
    return tuple(params), pos


def _parse_pair(text: str, pos: int) -> Tuple[NameValuePair, int, Optional[str]]:
    """
    Parse one name[=value] pair starting at pos.

    Returns:
        (pair, position after the consumed delimiter, delimiter or None at end)
    """
    end = len(text)
    start = pos

    # Name runs up to "=", a delimiter or the end of the text.
    while pos < end and text[pos] != "=" and text[pos] not in _DELIMITERS:
        pos += 1

    name = text[start:pos].strip(_WHITESPACE)
    if pos == end:
        return NameValuePair(name), pos, None
    if text[pos] in _DELIMITERS:
        return NameValuePair(name), pos + 1, text[pos]

    pos += 1  # skip "="
    value_start = pos
    quoted = False
    escaped = False
    delimiter = None
    while pos < end:
        ch = text[pos]
        if ch == '"' and not escaped:
            quoted = not quoted
        if not quoted and not escaped and ch in _DELIMITERS:
            delimiter = ch
            break
        if escaped:
            escaped = False
        else:
            escaped = quoted and ch == "\\"
        pos += 1

    raw = text[value_start:pos].strip(_WHITESPACE)
    if len(raw) >= 2 and raw[0] == '"' and raw[-1] == '"':
        raw = raw[1:-1]

    if delimiter is not None:
        pos += 1
    return NameValuePair(name, raw), pos, delimiter
