"""
Book catalog: storage, filtered listing and admin-gated mutations.
"""
