"""Bundled data files for treectl."""
