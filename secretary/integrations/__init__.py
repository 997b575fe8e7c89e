"""
External integrations (calendar stores backed by third-party services)
"""
