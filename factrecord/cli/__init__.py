# CLI package for factrecord
"""
Read-only CLI for auditing stored Fact bindings.

Commands:
    factrecord audit — Resolve every Fact in a dump
    factrecord show  — Show one reconciled Fact
"""
