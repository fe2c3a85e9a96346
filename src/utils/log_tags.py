"""
Subsystem tags prefixed to log messages, so output can be grepped by area.
"""

STORE = "[STORE]"
SUBMISSION = "[SUBMISSION]"
REVIEW = "[REVIEW]"
ABSTRACT = "[ABSTRACT]"
DECISION = "[DECISION]"
DISCUSSION = "[DISCUSSION]"
PAYMENT = "[PAYMENT]"
AUTOSAVE = "[AUTOSAVE]"
WS = "[WS]"
CLI = "[CLI]"
