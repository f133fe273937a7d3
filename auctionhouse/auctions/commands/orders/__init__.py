"""
Order factory and order lifecycle commands
"""
