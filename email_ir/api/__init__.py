"""
Email IR API Package
"""
