"""
Deploy, attach to and call NBMon contracts from one CLI.
"""

__version__ = "0.1.0"
