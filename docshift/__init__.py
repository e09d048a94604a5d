"""
docshift - Relational to Document Store Migration Engine

A dependency-aware toolkit for migrating tables from a relational database
into collections of a document store, one entity at a time.

Supports:
- Dependency graphs built from foreign-key relationships
- Ordered migration phases (topological leveling)
- Live source/target record count comparison
- Standalone vs embedded collection strategy suggestions
- Interactive, dependency-gated migration sessions
"""

__version__ = "0.1.0"
