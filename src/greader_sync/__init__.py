"""Google Reader API synchronization engine (FreshRSS, Inoreader, TheOldReader, BazQux, Reedah)."""

from .client import GreaderClient
from .config import Config, load_config
from .errors import AuthError, NetworkError, PayloadError, SyncError
from .models import FeedStatus, Message, MessageStateSets, Result
from .providers import ProviderVariant
from .server import main
from .sync import SyncOrchestrator
from .tree import CategoryTree

__all__ = [
    "main",
    "GreaderClient",
    "Config",
    "load_config",
    "AuthError",
    "NetworkError",
    "PayloadError",
    "SyncError",
    "FeedStatus",
    "Message",
    "MessageStateSets",
    "Result",
    "ProviderVariant",
    "SyncOrchestrator",
    "CategoryTree",
]

__version__ = "0.1.0"
