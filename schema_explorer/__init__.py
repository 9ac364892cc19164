"""Schema Explorer: code generation from relational database schemas."""

__version__ = "0.1.0"
