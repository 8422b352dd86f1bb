"""Options literal encoder for the embedded compiler.

The compiler receives its options as a JavaScript object literal evaluated
inside the script runtime. Only the value types the compiler options use
are supported: booleans, strings, sequences of strings and nested mappings.

Strings are escaped by prefixing backslash and double quote with a
backslash. Nothing else is escaped; the runtime's parser accepts raw
control characters inside string literals.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from brewcoffee.models import CompileOptions

_ESCAPE_PATTERN = re.compile(r'[\\"]')


def escape_string(text: str) -> str:
    """Escape backslash and double quote characters.

    Example:
        >>> escape_string('a"b.coffee')
        'a\\\\"b.coffee'
    """
    return _ESCAPE_PATTERN.sub(r"\\\g<0>", text)


def encode(value: Any) -> str:
    """Encode a value as a compiler options literal.

    Args:
        value: A bool, str, sequence or mapping (recursively).

    Returns:
        Literal text, e.g. ``{ "bare" : true, "sourceFiles" : [ "a.coffee" ] }``.

    Raises:
        TypeError: For any other value type, including None and numbers.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{escape_string(value)}"'
    if isinstance(value, Mapping):
        entries = ", ".join(
            f'"{escape_string(str(key))}" : {encode(item)}' for key, item in value.items()
        )
        return "{ " + entries + " }"
    if isinstance(value, Sequence):
        return "[ " + ", ".join(encode(item) for item in value) + " ]"
    raise TypeError(f"Cannot encode compiler option of type {type(value).__name__}")


def encode_options(options: CompileOptions) -> str:
    """Encode CompileOptions as the literal the compiler expects."""
    return encode(options.to_compiler_options())
