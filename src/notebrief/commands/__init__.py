"""CLI command modules for notebrief."""
