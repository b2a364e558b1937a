"""JSON message envelopes exchanged over a Transport."""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

CssType = Literal["css", "less"]


class _Envelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def dump(self) -> str:
        # Nulls inside a diff mean "cleared"; only a missing source is omitted.
        unset = {name for name in ("source",) if getattr(self, name, "") is None}
        return json.dumps(self.model_dump(by_alias=True, exclude=unset))


class OpenSheetMessage(_Envelope):
    """Announces a stylesheet and its current rules.

    ``css_rules`` stays raw JSON here; receivers build the tree with
    ``RuleTree.from_structured`` so unknown kinds are dropped, not fatal.
    """

    type: Literal["openSheet"] = "openSheet"
    name: str = Field(min_length=1)
    css_type: CssType = Field(default="css", alias="cssType")
    source: str | None = None
    css_rules: list[dict[str, Any]] = Field(default_factory=list, alias="cssRules")


class RulesDiffMessage(_Envelope):
    """Carries one wire diff for a named stylesheet.

    ``rules_diff`` is validated by the diff codec, not here.
    """

    type: Literal["rulesDiff"] = "rulesDiff"
    sheet_name: str = Field(alias="sheetName", min_length=1)
    rules_diff: list[Any] = Field(alias="rulesDiff")


Message = Annotated[Union[OpenSheetMessage, RulesDiffMessage], Field(discriminator="type")]

_MESSAGE_ADAPTER: TypeAdapter[Message] = TypeAdapter(Message)


def parse_message(raw: str | bytes) -> OpenSheetMessage | RulesDiffMessage | None:
    """Decode one envelope. Anything unusable is logged and yields None."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Ignoring message that is not JSON: %s", e)
        return None
    if not isinstance(data, dict) or data.get("type") not in ("openSheet", "rulesDiff"):
        kind = data.get("type") if isinstance(data, dict) else type(data).__name__
        logger.warning("Ignoring message of unknown type %r", kind)
        return None
    try:
        return _MESSAGE_ADAPTER.validate_python(data)
    except ValidationError as e:
        logger.warning("Ignoring malformed %s message: %s", data["type"], e)
        return None


def dump_message(message: OpenSheetMessage | RulesDiffMessage) -> str:
    return message.dump()
