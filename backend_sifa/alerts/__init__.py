"""
Alerting — cron evaluator, alert state machine, mute tokens, notification transports.
"""

from backend_sifa.alerts.engine import Action, Decision, StateDelta, evaluate
from backend_sifa.alerts.mute_token import MuteTokenSigner
from backend_sifa.alerts.notifier import Notifier, build_notifier

__all__ = [
    "Action",
    "Decision",
    "MuteTokenSigner",
    "Notifier",
    "StateDelta",
    "build_notifier",
    "evaluate",
]
