"""
NoReply Pro follow-up store.

Local persistence for outreach follow-ups, automation rules and
message templates, with a small Flask API for the dashboard.
"""

__version__ = "1.0.0"
__author__ = "NoReply Pro"
