"""
Pipeline stages.

Each stage is idempotent except deploy, which always replaces the
deployed tree wholesale.
"""
