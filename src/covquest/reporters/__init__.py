"""Output reporters for challenges."""
