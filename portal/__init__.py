"""
Reporting portal API.
"""
