"""Core comparison, planning and execution logic for treectl."""
