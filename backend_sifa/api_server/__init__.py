"""
API server package — HTTP interface.

Receives liveness reports and mute requests, exposes target state, and hosts
the background alert scheduler for the lifetime of the app.
"""
