# API package for factrecord
"""
API-facing models and record to model converters.
"""
