# marefa/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Default admin creation on first startup
- db: Database configuration and connection management
- errors: Domain error types and their HTTP codes
- security: Password hashing and session tokens
"""
