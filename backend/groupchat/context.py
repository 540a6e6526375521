import time
from dataclasses import dataclass, field
from typing import Callable

from groupchat.config import Settings
from groupchat.services.locks import KeyedLocks


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class AppContext:
    """Process-wide state handed explicitly to every service call."""
    settings: Settings
    locks: KeyedLocks = field(default_factory=KeyedLocks)
    clock: Callable[[], int] = now_ms
