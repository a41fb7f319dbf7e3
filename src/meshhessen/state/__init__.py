from .app_state import AppState
from .conversations import ConversationRegistry
from .debug_log import MAX_DEBUG_LINES, DebugLog, DebugLogHandler
from .dispatch import EventDispatcher, message_from_dict, node_from_dict
from .message_store import MessageStore
from .node_registry import NodeRegistry
from .unread import UnreadTracker

__all__ = [
    "AppState",
    "ConversationRegistry",
    "DebugLog",
    "DebugLogHandler",
    "EventDispatcher",
    "MAX_DEBUG_LINES",
    "MessageStore",
    "NodeRegistry",
    "UnreadTracker",
    "message_from_dict",
    "node_from_dict",
]
