"""Fireside Archive: firesides, snippets, deepenings, outlines and reference-counted tags."""
