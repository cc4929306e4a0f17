# Resolution package for factrecord
"""
Binding direction resolution.

Reconstructs source/destination Objects of a Fact from its stored
bindings and derives bindings back from resolved endpoints.
"""
