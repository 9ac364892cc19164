"""
Python-specific naming rules.

Generated property names must not be Python keywords or shadow names the
generated class body calls.
"""

import keyword

# Python reserved keywords
PYTHON_RESERVED_WORDS = set(keyword.kwlist)

# Names called inside generated class bodies
PYTHON_CLASS_BODY_NAMES = {
    "field",
}


def get_python_reserved_words() -> set:
    """Words a property name must avoid in generated Python code."""
    return PYTHON_RESERVED_WORDS | PYTHON_CLASS_BODY_NAMES
