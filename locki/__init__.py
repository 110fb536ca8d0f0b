"""Locki social productivity backend."""
