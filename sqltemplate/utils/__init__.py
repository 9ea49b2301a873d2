"""Utility functions and classes for sqltemplate."""
