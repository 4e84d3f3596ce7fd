"""
Store Module

Record file persistence layer.

This module provides:
- Text codec for the five-column record file format
- Defensive decoding that degrades bad rows instead of failing
- RecordRepository for open / create / commit of backing files
- Atomic whole-file commits via temp file and rename
"""

__version__ = "0.1.0"
