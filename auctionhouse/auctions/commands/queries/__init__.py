"""
Read only queries
"""
