"""Chat thread helpers."""

from promptlab.models.conversation import Message, Role


def history_for_regeneration(messages: list[Message], assistant_index: int) -> list[Message]:
    """Return the thread prefix that produced the assistant message at ``assistant_index``.

    The prefix ends with the user message directly before the assistant reply.

    Raises:
        ValueError: If the index is out of range, does not point at an
            assistant message, or is not preceded by a user message.
    """
    if not 0 <= assistant_index < len(messages):
        raise ValueError(f"Message index {assistant_index} is out of range")

    if messages[assistant_index].role != Role.ASSISTANT:
        raise ValueError(f"Message {assistant_index} is not an assistant message")

    user_index = assistant_index - 1
    if user_index < 0 or messages[user_index].role != Role.USER:
        raise ValueError(f"Message {assistant_index} does not follow a user message")

    return messages[: user_index + 1]
