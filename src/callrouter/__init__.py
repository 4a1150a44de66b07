"""
Office call routing and voicemail notification service.
"""

__version__ = "0.1.0"
