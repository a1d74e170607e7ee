"""Core domain package for guardianbot.

Core contains the chat transcript, reply rules, feed and issue triage logic
without any storage-, HTTP- or UI-specific code, keeping the business logic
portable.
"""
