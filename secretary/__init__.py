"""
Calendar Secretary - turns chat messages into calendar operations

A bounded agent loop brokers a conversation between a language model and a
small catalog of calendar tools.
"""
__version__ = "0.1.0"
