from pydantic import BaseModel, Field
from typing import Literal


class ParserConfig(BaseModel):
    strict: bool = True
    less_command: list[str] = Field(default_factory=lambda: ["lessc", "-"], min_length=1)
    less_timeout: float = Field(default=30.0, gt=0)


class WatchConfig(BaseModel):
    patterns: list[str] = Field(default_factory=lambda: ["*.css", "*.less"])
    ignore_parts: list[str] = Field(default_factory=lambda: [
        ".git", "node_modules", "__pycache__", ".venv"
    ])


class ScissorsConfig(BaseModel):
    parser: ParserConfig = Field(default_factory=ParserConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
