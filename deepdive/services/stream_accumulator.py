"""Folds a streamed chat reply into the last message of a transcript."""

from __future__ import annotations

from typing import AsyncIterable, Callable, List, Optional, Sequence

from ..schemas import ChatMessage

UpdateCallback = Callable[[List[ChatMessage]], None]


class StreamAccumulator:
    """Holds a transcript ending in a model placeholder and grows it fragment by fragment.

    Fragments are appended in arrival order to one buffer, and the last
    message is replaced with the buffer's contents after each one. The last
    message is only rewritten while it is a ``model`` turn. ``on_update``
    receives a fresh copy of the transcript after every change.
    """

    def __init__(
        self,
        history: Sequence[ChatMessage],
        on_update: Optional[UpdateCallback] = None,
    ) -> None:
        self._messages: List[ChatMessage] = list(history)
        self._on_update = on_update
        self._buffer: List[str] = []
        self._placeholder_added = False

    @property
    def text(self) -> str:
        return "".join(self._buffer)

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update(self.messages)

    def begin(self) -> List[ChatMessage]:
        """Append the empty model placeholder."""
        if not self._placeholder_added:
            self._messages.append(ChatMessage(role="model", text=""))
            self._placeholder_added = True
            self._notify()
        return self.messages

    def feed(self, fragment: str) -> str:
        """Fold one fragment and return the text so far."""
        if not fragment:
            return self.text
        self._buffer.append(fragment)
        if self._messages and self._messages[-1].role == "model":
            self._messages[-1] = ChatMessage(role="model", text=self.text)
            self._notify()
        return self.text

    async def consume(self, stream: AsyncIterable[str]) -> str:
        """Drive ``stream`` to the end. Errors propagate; nothing is resumed."""
        self.begin()
        async for fragment in stream:
            self.feed(fragment)
        return self.text

    def discard(self) -> List[ChatMessage]:
        """Remove the model placeholder, keeping everything before it."""
        if self._placeholder_added and self._messages and self._messages[-1].role == "model":
            self._messages.pop()
            self._placeholder_added = False
            self._notify()
        return self.messages


__all__ = ["StreamAccumulator"]
