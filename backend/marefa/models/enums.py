"""
Closed value sets shared by models, schemas and services.
"""
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class SubscriptionTier(str, Enum):
    FREE = "free"
    BASIC = "basic"
    RESEARCH = "research"
    TEAMS = "teams"


class ChatCategory(str, Enum):
    AHKAM = "ahkam"      # rulings Q&A
    SUKOON = "sukoon"    # wellbeing support
    RESEARCH = "research"


class Sender(str, Enum):
    USER = "user"
    AI = "ai"
