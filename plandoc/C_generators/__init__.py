"""
C_generators: Candidate generators over extracted text.

Policy segmentation, requirement and cross-reference extraction, address
heuristics, and optional image captioning.
"""
