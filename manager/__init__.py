"""
Manager Module

Record operations, configuration and the command-line interface.

This module provides:
- RecordManager: add / update / soft delete / permanent delete / recover / search
- EditSession: multi-step edits with save or cancel
- YAML-based configuration loading
- Bounded-attempt input acquisition for prompts
- Discovery of candidate record files
"""

__version__ = "0.1.0"
