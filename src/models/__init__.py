"""Database model type definitions."""

from src.models.conversation import Conversation, ConversationParticipant, ConversationView
from src.models.listing import ListingStatus
from src.models.message import Message, MessageView
from src.models.post import FeedFilter, Post, PostComment
from src.models.profile import AppRole, Profile, ProfileSummary, VerificationStatus
from src.models.university import RequestStatus, University

__all__ = [
    "AppRole",
    "Conversation",
    "ConversationParticipant",
    "ConversationView",
    "FeedFilter",
    "ListingStatus",
    "Message",
    "MessageView",
    "Post",
    "PostComment",
    "Profile",
    "ProfileSummary",
    "RequestStatus",
    "University",
    "VerificationStatus",
]
