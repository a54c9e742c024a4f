"""
Table and terrain allocation for tabletop tournament rounds.

The engine lives in tablealloc.services.allocation_engine; the value types
it consumes and produces live in tablealloc.utils.allocation_types.
"""
