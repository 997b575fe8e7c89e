"""
Agents - the calendar conversation orchestrator
"""
