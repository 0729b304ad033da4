"""
Z_utils: Shared text and image helpers.
"""
