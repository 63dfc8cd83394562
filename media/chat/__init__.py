"""
Chat front-end: command parsing, dispatching and reply delivery.
"""
