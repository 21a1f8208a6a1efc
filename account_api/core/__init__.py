"""
Core utilities shared across the account API.

This package hosts configuration, the error taxonomy, logging setup, the
mail adapter and credential hashing. Services depend on these primitives
instead of reading os.environ or talking to SMTP directly.
"""
