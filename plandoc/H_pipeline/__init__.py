"""
H_pipeline: Composition root and end-to-end document pipeline.
"""
