"""
Core configuration, exceptions and application wiring
"""
