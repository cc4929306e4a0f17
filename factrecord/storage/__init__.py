# Storage package for factrecord
"""
Collaborator interfaces for Object, Fact and search lookups, plus
in-memory implementations.
"""
