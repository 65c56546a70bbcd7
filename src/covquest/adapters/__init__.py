"""Adapters for coverage reports and repository activity."""
