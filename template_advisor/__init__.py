"""
Process Template Advisor

Knowledge fusion, template validation and dependency analysis for
AI-assisted process template generation.
"""

__version__ = "0.1.0"
