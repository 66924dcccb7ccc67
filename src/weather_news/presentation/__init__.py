"""Presentation layer: session state, request tracking and text rendering."""
