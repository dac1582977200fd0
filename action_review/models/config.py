"""Review configuration: which kinds auto-apply, which need content, limits."""

import os
from typing import List

from pydantic import BaseModel, Field

from action_review.models.action import ActionKind


def _env_kinds(name: str, default: List[ActionKind]) -> List[ActionKind]:
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    return [ActionKind(part.strip()) for part in raw.split(",") if part.strip()]


class ReviewConfig(BaseModel):
    """Configuration for the review workflow."""

    auto_apply_kinds: List[ActionKind] = [ActionKind.FOLLOW_UP, ActionKind.SCORING]
    content_required_kinds: List[ActionKind] = [ActionKind.EMAIL]
    max_content_length: int = Field(default=10000, ge=1)
    ledger_path: str = ":memory:"
    log_level: str = "INFO"

    def requires_approval(self, kind: ActionKind) -> bool:
        return kind not in self.auto_apply_kinds

    def requires_content(self, kind: ActionKind) -> bool:
        return kind in self.content_required_kinds

    @classmethod
    def from_env(cls) -> "ReviewConfig":
        """Build a config from REVIEW_* environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            auto_apply_kinds=_env_kinds("REVIEW_AUTO_APPLY_KINDS", defaults.auto_apply_kinds),
            content_required_kinds=_env_kinds(
                "REVIEW_CONTENT_REQUIRED_KINDS", defaults.content_required_kinds
            ),
            max_content_length=int(
                os.getenv("REVIEW_MAX_CONTENT_LENGTH", str(defaults.max_content_length))
            ),
            ledger_path=os.getenv("REVIEW_LEDGER_PATH", defaults.ledger_path),
            log_level=os.getenv("REVIEW_LOG_LEVEL", defaults.log_level).upper(),
        )
