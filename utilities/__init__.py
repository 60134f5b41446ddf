"""
Shared configuration, logging and error types.
"""
