"""
Tools Module - calendar capabilities exposed to the language model
"""
