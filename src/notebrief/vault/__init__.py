"""Vault loading for notebrief."""
from .loader import NoteParser, VaultScan, find_note_files, load_vault, parse_note, should_exclude

__all__ = [
    "NoteParser",
    "VaultScan",
    "find_note_files",
    "load_vault",
    "parse_note",
    "should_exclude",
]
