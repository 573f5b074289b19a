"""Outbound events pushed to whatever UI is listening."""

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)

FILE_UPLOAD_REPLY = "file-upload-reply"
UPLOADED_FILES_GET_REPLY = "uploaded-files-get-reply"
FILE_LIST_GET_REPLY = "file-list-get-reply"
FILE_DELETE_REPLY = "file-delete-reply"
DIRECTORY_CREATE_REPLY = "directory-create-reply"


class EventChannel(Protocol):
    def send(self, event: str, payload: Any = None) -> None: ...


class CallbackChannel:
    """Fire-and-forget dispatch to callbacks subscribed per event name."""

    def __init__(self):
        self._subscribers: dict[str, list[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, event: str, callback: Callable[[Any], None]) -> None:
        self._subscribers[event].append(callback)

    def send(self, event: str, payload: Any = None) -> None:
        for callback in self._subscribers.get(event, []):
            try:
                callback(payload)
            except Exception:
                logger.exception("Subscriber for %s failed", event)
