"""
J_export: Serialization of ParseResult records and parse summaries.
"""
