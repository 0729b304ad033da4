"""
D_validation: Confidence scoring and validation of policy candidates.
"""
