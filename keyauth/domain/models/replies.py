"""Display payloads returned by the command handler.

A `Reply` is either plain text or an `Embed` (title, color, description and
ordered fields). The user interface decides how to render them.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

INFO_COLOR = "#0099ff"
SUCCESS_COLOR = "#00ff00"


@dataclass(frozen=True)
class EmbedField:
    name: str
    value: str


@dataclass(frozen=True)
class Embed:
    title: str
    color: str = INFO_COLOR
    description: Optional[str] = None
    fields: Tuple[EmbedField, ...] = field(default_factory=tuple)

    def field_value(self, name: str) -> Optional[str]:
        for embed_field in self.fields:
            if embed_field.name == name:
                return embed_field.value
        return None


@dataclass(frozen=True)
class Reply:
    text: Optional[str] = None
    embed: Optional[Embed] = None

    @classmethod
    def message(cls, text: str) -> "Reply":
        return cls(text=text)

    @classmethod
    def card(cls, title: str, fields: List[Tuple[str, str]] = (), color: str = INFO_COLOR,
             description: Optional[str] = None) -> "Reply":
        return cls(embed=Embed(
            title=title,
            color=color,
            description=description,
            fields=tuple(EmbedField(name, value) for name, value in fields),
        ))
