"""Core (UI-agnostic) inventory dashboard logic.

This package contains:
- workbook access (XLSX sheets -> header-keyed rows)
- value normalization (locale digits, loose booleans)
- identity / role resolution and the category catalog
- product query, mutation and favorite services
- the envelope-returning `Dashboard` facade used by the API and the page
"""
