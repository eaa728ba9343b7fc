"""
Profile Service

Microservice for user profiles, favorite genres, authored and liked books,
and the follow graph between users.
"""

__version__ = "1.0.0"
