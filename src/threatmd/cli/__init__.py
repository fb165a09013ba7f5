"""
Command-line interface for threatmd.
"""
