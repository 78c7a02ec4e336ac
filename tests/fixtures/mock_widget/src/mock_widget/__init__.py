"""Reusable widget template; the module itself ships no code."""
