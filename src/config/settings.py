"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use UNRENDER_ prefix (e.g., UNRENDER_STRICT_MODE=true).

Settings can also be loaded from a .env file in the project root.
"""

import re

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models.slots import Slot, SlotType
from ..models.results import ArrayMerge, ComponentPlacement


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use UNRENDER_ prefix.

    Examples:
        UNRENDER_STRICT_MODE=true
        UNRENDER_ARRAY_MERGE=append
        UNRENDER_COMPONENT_PLACEMENT=root
    """

    model_config = SettingsConfigDict(
        env_prefix="UNRENDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Extraction configuration
    strict_mode: bool = Field(
        default=False,
        description="Raise ExtractError when slots stay unmatched (default for extract(strict=None))",
    )

    debug_mode: bool = Field(
        default=False,
        description="Log the constructed anchor pattern after each extraction",
    )

    component_placement: ComponentPlacement = Field(
        default=ComponentPlacement.BINDINGS,
        description="Where component extractor output is placed in the extracted data",
    )

    section_break_pattern: str = Field(
        default=r"^[ \t]{0,3}#{1,6}(?:[ \t]|$)",
        description="Regex (multiline) for lines that end a section when capturing to section end",
    )

    # Debug group naming
    group_prefix: str = Field(
        default="slot_",
        description="Prefix for debug group names of expression/conditional/loop slots",
    )

    component_group_prefix: str = Field(
        default="component_",
        description="Prefix for debug group names of component slots",
    )

    # Merge configuration
    array_merge: ArrayMerge = Field(
        default=ArrayMerge.REPLACE,
        description="Default array merge policy for apply_extract()",
    )

    # AI fallback configuration
    ai_confidence_threshold: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Pattern confidence at or above which the AI provider is not consulted",
    )

    def groupName_make(self, slot: Slot, index: int) -> str:
        """
        Generate a debug group name for a slot at given index.

        Args:
            slot: Slot being matched
            index: Zero-based position of the slot in the template

        Returns:
            Group name usable in a regex named group (e.g., "slot_data_title_0")

        Example:
            >>> settings = AppSettings()
            >>> settings.groupName_make(Slot(path="data.title", type=SlotType.EXPRESSION, raw="{data.title}"), 0)
            'slot_data_title_0'
        """
        if slot.type == SlotType.COMPONENT:
            return f"{self.component_group_prefix}{(slot.component_name or '').lower()}_{index}"
        cleaned = re.sub(r"[^a-zA-Z0-9_]", "", (slot.path or "").replace(".", "_"))
        return f"{self.group_prefix}{cleaned}_{index}"


# Singleton instance - import this in your code
appsettings = AppSettings()
