"""
Pydantic schemas for API request and response validation, plus the
canonical invoice model shared by the normalizer, totals engine and renderer.
"""
