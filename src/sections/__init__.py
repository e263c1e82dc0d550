"""
Reusable dashboard and statistics sections.
"""
