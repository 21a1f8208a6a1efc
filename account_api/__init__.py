"""Account management API (registration, sessions, password reset)."""
