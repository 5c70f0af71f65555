"""
Sifa — dead man's switch for jobs, cron tasks and services.

Targets report liveness through a webhook; a background scheduler evaluates
every target against its maximum allowed silence and alert schedule and
notifies when one goes quiet. Modular layout: state store, alert engine,
scheduler, API server.
"""

__version__ = "0.1.0"
