"""Identity domain module.

Users, claims, external logins and tokens, plus the ports through which
they are persisted.
"""
