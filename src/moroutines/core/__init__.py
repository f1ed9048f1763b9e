"""
Core building blocks shared by the task subsystem: errors, events, ports and the Runtime.
"""
