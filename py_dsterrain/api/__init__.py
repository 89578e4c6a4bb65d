"""
HTTP interface and viewer state.
"""
