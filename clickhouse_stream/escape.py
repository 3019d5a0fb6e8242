"""
Escaping of special characters in values sent inside queries.
"""

_ESCAPES = {
    "\b": "\\b",
    "\f": "\\f",
    "\r": "\\r",
    "\n": "\\n",
    "\t": "\\t",
    "'": "\\'",
    "\\": "\\\\",
    "/": "\\/",
    "-": "\\-",
}

_UNESCAPES = {v[1]: k for k, v in _ESCAPES.items()}


def escape(line: str) -> str:
    """Backslash-escape control characters, quotes, slashes and dashes."""
    return "".join(_ESCAPES.get(char, char) for char in line)


def unescape(line: str) -> str:
    """
    Undo escape().

    Unknown escape pairs and a trailing lone backslash are kept as is.
    """
    result = []
    i = 0
    length = len(line)
    while i < length:
        char = line[i]
        if char == "\\" and i + 1 < length and line[i + 1] in _UNESCAPES:
            result.append(_UNESCAPES[line[i + 1]])
            i += 2
            continue
        result.append(char)
        i += 1
    return "".join(result)
