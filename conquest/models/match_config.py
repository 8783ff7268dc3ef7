from typing import Annotated, Optional

from pydantic import field_validator
from pydantic import Field  # type: ignore
from pydantic_settings import BaseSettings, SettingsConfigDict

from .world_config import AIDifficulty


class MatchSettings(BaseSettings):
    """Per-match setup chosen by the player (or read from CONQUEST_* env vars)."""

    model_config = SettingsConfigDict(env_prefix="CONQUEST_")

    width: float = 800.0
    height: float = 600.0
    player1_ai: bool = False
    player2_ai: bool = True
    ai_opponents: Annotated[int, Field(description="0, 1 or 2 AI opponents")] = 1
    ai_difficulty: AIDifficulty = AIDifficulty.MEDIUM
    seed: Optional[str] = None

    @field_validator("ai_opponents", mode="after")
    @classmethod
    def _clamp_opponents(cls, value: int) -> int:
        # out-of-range counts are clamped rather than rejected
        return max(0, min(2, value))
