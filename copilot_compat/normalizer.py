"""
Repair of missing tool call identifiers before forwarding to Copilot.

Copilot rejects conversations whose tool results cannot be matched to a
tool call. Some clients omit the ids entirely, so when any id is missing
every tool call and tool result is renumbered by position.
"""
import logging
from typing import List

from .models import ChatRequest

logger = logging.getLogger(__name__)


def ids_present(request: ChatRequest) -> bool:
    """True when every tool result and every assistant tool call has an id"""
    for message in request.messages:
        if message.role == "tool" and not message.tool_call_id:
            return False
        if message.role == "assistant" and message.tool_calls:
            if any(not tool_call.id for tool_call in message.tool_calls):
                return False
    return True


def normalize_tool_ids(request: ChatRequest, request_id: str = "-") -> ChatRequest:
    """Renumber tool call ids positionally when any of them is missing

    Tool results are paired with tool call names by order of appearance.
    The request is modified in place and returned.
    """
    if ids_present(request):
        return request

    names: List[str] = [
        tool_call.function.name
        for message in request.messages
        if message.role == "assistant" and message.tool_calls
        for tool_call in message.tool_calls
    ]
    tool_messages = [message for message in request.messages if message.role == "tool"]

    if len(tool_messages) != len(names):
        logger.warning(
            f"[{request_id}] Tool id repair pairs {len(tool_messages)} tool result(s) "
            f"with {len(names)} tool call(s); unmatched entries keep their original fields"
        )

    for index, (message, name) in enumerate(zip(tool_messages, names)):
        message.tool_call_id = str(index)
        message.name = name

    for message in request.messages:
        if message.role == "assistant" and message.tool_calls:
            for index, tool_call in enumerate(message.tool_calls):
                tool_call.id = str(index)

    logger.debug(f"[{request_id}] Renumbered {len(names)} tool call id(s)")
    return request
