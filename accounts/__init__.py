"""
User accounts: credential storage, password hashing, bearer tokens
and the role-based authorization policy.
"""
