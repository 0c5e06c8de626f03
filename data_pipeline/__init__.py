"""
Student address normalization pipeline.
"""
