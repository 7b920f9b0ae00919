"""
Token discovery, analysis and ranking pipeline.
"""
