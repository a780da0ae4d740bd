"""
Pydantic schemas for records handed to the engine by collaborators.

Bet-slip extraction, user settings and the live-feed poller all hand the
engine loosely-typed dicts.  Parsing them here means the pure engine code
never has to guard against strings where numbers belong.  A malformed
payload raises ``pydantic.ValidationError`` before it reaches any math.
"""

from __future__ import annotations

import re
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from slipcheck.core.kelly import BankrollConfig
from slipcheck.services.hedge_status import LiveSnapshot
from slipcheck.services.parlay_simulator import Leg, create_leg

#: Price assumed when extraction returns an unreadable leg price.
DEFAULT_LEG_ODDS = -110

_ODDS_RE = re.compile(r"^\s*([+-]?\d+)")


def _parse_american(value: object) -> Optional[int]:
    """Read ``"+150"``, ``"-110"``, ``150`` or ``-110.0``; ``None`` if unreadable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        match = _ODDS_RE.match(value)
        if match:
            return int(match.group(1))
    return None


# ---------------------------------------------------------------------------
# Bet slip
# ---------------------------------------------------------------------------

class LegPayload(BaseModel):
    """One extracted leg, e.g. ``{"description": "LeBron O25.5 pts", "odds": "-115"}``."""

    description: str = Field(..., min_length=1, max_length=300)
    odds: int = Field(DEFAULT_LEG_ODDS, description="American odds")

    @field_validator("odds", mode="before")
    @classmethod
    def parse_odds(cls, v: object) -> int:
        parsed = _parse_american(v)
        # Extraction sometimes drops the price; -110 is the standard juice.
        # A price of 0 is kept and reads as pick'em downstream.
        return parsed if parsed is not None else DEFAULT_LEG_ODDS

    def to_leg(self) -> Leg:
        return create_leg(self.description, self.odds)


class ParlayPayload(BaseModel):
    """A full extracted slip."""

    legs: List[LegPayload] = Field(..., min_length=1)
    stake: float = Field(10.0, gt=0)
    total_odds: Optional[int] = Field(None, description="American total printed on the slip")

    @field_validator("total_odds", mode="before")
    @classmethod
    def parse_total_odds(cls, v: object) -> Optional[int]:
        if v is None:
            return None
        return _parse_american(v) or None

    def to_legs(self) -> List[Leg]:
        return [leg.to_leg() for leg in self.legs]


# ---------------------------------------------------------------------------
# Bankroll settings
# ---------------------------------------------------------------------------

class BankrollPayload(BaseModel):
    bankroll_amount: float = Field(..., gt=0)
    kelly_multiplier: float = Field(0.5, gt=0, le=1)
    max_bet_percent: float = Field(0.05, gt=0, le=0.25)

    def to_config(self) -> BankrollConfig:
        return BankrollConfig(
            bankroll_amount=self.bankroll_amount,
            kelly_multiplier=self.kelly_multiplier,
            max_bet_percent=self.max_bet_percent,
        )


# ---------------------------------------------------------------------------
# Live feed
# ---------------------------------------------------------------------------

class LiveSnapshotPayload(BaseModel):
    """
    One live-feed tick for a tracked prop.

    Accepts the feed's camelCase keys (``currentValue``, ``gameProgress``,
    ...) as well as snake_case.
    """

    model_config = ConfigDict(populate_by_name=True)

    line: float
    side: Literal["over", "under"]
    current_value: Optional[float] = Field(None, alias="currentValue")
    projected_final: Optional[float] = Field(None, alias="projectedFinal")
    game_progress: float = Field(0.0, ge=0, le=100, alias="gameProgress")
    pace_rating: float = Field(100.0, alias="paceRating")
    confidence: float = Field(50.0, ge=0, le=100)
    risk_flags: List[str] = Field(default_factory=list, alias="riskFlags")
    live_book_line: Optional[float] = Field(None, alias="liveBookLine")
    line_movement: Optional[float] = Field(None, alias="lineMovement")
    game_status: str = Field("in_progress", alias="gameStatus")

    @field_validator("side", mode="before")
    @classmethod
    def lower_side(cls, v: object) -> object:
        return v.lower() if isinstance(v, str) else v

    def to_snapshot(self) -> LiveSnapshot:
        return LiveSnapshot(
            line=self.line,
            side=self.side,
            current_value=self.current_value,
            projected_final=self.projected_final,
            game_progress=self.game_progress,
            pace_rating=self.pace_rating,
            confidence=self.confidence,
            risk_flags=frozenset(self.risk_flags),
            live_book_line=self.live_book_line,
            line_movement=self.line_movement,
            game_status=self.game_status,
        )
