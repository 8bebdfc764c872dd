from .users import User, Membership
from .clients import Client
from .folders import Folder
from .conversations import Conversation, ConversationEntry
from .items import Item, ItemStat
from .groups import Group, GroupMember
from .purchases import Purchase
from .jobs import Job, JobAgent, JobType
from .enums import ItemVisibility, PurchaseInterval, JobRunState, JobOrigin

__all__ = [
    "User",
    "Membership",
    "Client",
    "Folder",
    "Conversation",
    "ConversationEntry",
    "Item",
    "ItemStat",
    "Group",
    "GroupMember",
    "Purchase",
    "Job",
    "JobAgent",
    "JobType",
    "ItemVisibility",
    "PurchaseInterval",
    "JobRunState",
    "JobOrigin",
]
