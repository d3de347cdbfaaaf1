"""Chat transcript models.

The transcript is held by the caller and sent in full with every request;
nothing here is persisted.
"""

from enum import Enum

from pydantic import BaseModel, Field, PrivateAttr


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    role: ChatRole
    content: str

    def to_wire(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


APOLOGY_MESSAGE = "Sorry, I encountered an error. Please try again."


class ChatTranscript(BaseModel):
    """Running transcript that streamed deltas are written into.

    An assistant message is "open" from its first delta until the stream
    completes; further deltas extend it in place.
    """

    messages: list[ChatMessage] = Field(default_factory=list)
    _open: bool = PrivateAttr(default=False)

    @property
    def has_open_message(self) -> bool:
        return self._open and bool(self.messages) and self.messages[-1].role is ChatRole.ASSISTANT

    @property
    def last_user_message(self) -> str:
        for message in reversed(self.messages):
            if message.role is ChatRole.USER:
                return message.content
        return ""

    def add_user(self, content: str) -> ChatMessage:
        self.close()
        message = ChatMessage(role=ChatRole.USER, content=content)
        self.messages.append(message)
        return message

    def append_delta(self, delta: str) -> ChatMessage:
        """Extend the open assistant message, opening one if needed."""
        if self.has_open_message:
            current = self.messages[-1]
            current.content += delta
            return current
        message = ChatMessage(role=ChatRole.ASSISTANT, content=delta)
        self.messages.append(message)
        self._open = True
        return message

    def close(self) -> None:
        self._open = False

    def fail(self, notice: str = APOLOGY_MESSAGE) -> ChatMessage:
        """End the in-progress answer with a visible apology."""
        self.close()
        message = ChatMessage(role=ChatRole.ASSISTANT, content=notice)
        self.messages.append(message)
        return message

    def to_wire(self) -> list[dict[str, str]]:
        return [m.to_wire() for m in self.messages]
