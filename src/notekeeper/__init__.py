"""Notekeeper — multi-tenant note-taking API.

Users sign up, log in with a cookie-held session, and manage their own
text notes. Admins list and ban/unban regular accounts. Every read and
write is scoped to what the caller is allowed to see.
"""

__version__ = "0.1.0"
