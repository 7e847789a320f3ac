"""Immutable chat transcript.

Every update returns a new :class:`Transcript`; the old value is never
touched, so a reader holding a previous transcript (an HTTP handler rendering
the message list, say) never sees a message change under it while chunks are
still streaming in.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, replace
from typing import Literal

Role = Literal["user", "model"]


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    def extended(self, text: str) -> Message:
        return replace(self, content=self.content + text)


@dataclass(frozen=True)
class Transcript:
    """Ordered messages; the first one is always the greeting."""

    messages: tuple[Message, ...]

    @classmethod
    def start(cls, greeting: str) -> Transcript:
        return cls((Message("model", greeting),))

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)

    def __getitem__(self, index: int) -> Message:
        return self.messages[index]

    @property
    def greeting(self) -> Message:
        return self.messages[0]

    @property
    def last(self) -> Message:
        return self.messages[-1]

    @property
    def history(self) -> tuple[Message, ...]:
        """Everything after the greeting."""
        return self.messages[1:]

    def append(self, *messages: Message) -> Transcript:
        return Transcript(self.messages + messages)

    def extend_last(self, text: str) -> Transcript:
        """Append *text* to the trailing model message."""
        if self.last.role != "model":
            raise ValueError("the last message is not a model reply")
        return Transcript(self.messages[:-1] + (self.last.extended(text),))

    def replace_last(self, message: Message) -> Transcript:
        if len(self.messages) == 1:
            raise ValueError("the greeting cannot be replaced")
        return Transcript(self.messages[:-1] + (message,))
