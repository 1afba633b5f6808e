"""Shared models for the login flow.

Provides the User identity snapshot that crosses every package boundary:
the authentication repository produces it, the cache stores it, and the
app-level state machine routes on it.
"""
