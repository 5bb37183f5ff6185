"""Conversion services: extraction, sanitizing, layout, PDF and ZIP output."""
