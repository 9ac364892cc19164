"""
C# code generator module.

Generates ServiceStack OrmLite classes from the annotated database model.
"""

from .generator import CSharpGenerator
from .naming import CSHARP_RESERVED_WORDS
from .config import CSharpTypeMapper, CSHARP_TYPE_MAP

__all__ = [
    "CSharpGenerator",
    "CSHARP_RESERVED_WORDS",
    "CSharpTypeMapper",
    "CSHARP_TYPE_MAP",
]
