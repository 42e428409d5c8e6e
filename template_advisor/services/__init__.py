"""
Template advisor services: scoring, graph analysis, fusion, caching and the
search / recommendation use cases built on them.
"""
