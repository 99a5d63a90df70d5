"""
Accounts module - portal users and administrator credentials.

This module handles:
- User entity and domain logic
- Registration, login and session tokens
- Ban / unban, email change and password reset
- One-time verification codes
- Administrator API keys
"""
