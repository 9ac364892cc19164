"""
Python code generator module.

Generates Python dataclasses from the annotated database model.
"""

from .generator import PythonGenerator
from .naming import get_python_reserved_words
from .config import PythonTypeMapper, PYTHON_TYPE_MAP, get_required_imports

__all__ = [
    # Generator
    "PythonGenerator",
    # Naming
    "get_python_reserved_words",
    # Configuration
    "PythonTypeMapper",
    "PYTHON_TYPE_MAP",
    "get_required_imports",
]
