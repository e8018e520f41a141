"""Bundled catalog data (quests, achievements, talents) loaded by catalog.py."""
