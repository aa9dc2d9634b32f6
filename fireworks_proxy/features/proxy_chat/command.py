from pydantic import BaseModel, ConfigDict
from typing import Any, List

REQUIRED_FIELDS = ("model", "messages")


class ProxyChatRequest(BaseModel):
    """
    Inbound chat-completion body.

    Fields are deliberately untyped: values are forwarded as received and the
    upstream API is left to reject malformed parameters. Only the presence of
    ``model`` and ``messages`` is checked.
    """
    model_config = ConfigDict(extra="ignore")

    model: Any = None
    messages: Any = None
    temperature: Any = None
    top_p: Any = None
    top_k: Any = None
    max_tokens: Any = None
    presence_penalty: Any = None
    frequency_penalty: Any = None
    stream: Any = None
    tools: Any = None
    tool_choice: Any = None

    def missing_fields(self) -> List[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]

    @property
    def tools_enabled(self) -> bool:
        return isinstance(self.tools, list) and len(self.tools) > 0
