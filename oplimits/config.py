from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

# Duration key of temporary limits without an acceptable duration
INFINITE_DURATION = 2147483647


class ConversionConfig(BaseModel):
    namespace: str = Field(
        "CGMES", description="First token of every provenance property key."
    )
    unbounded_duration: int = Field(
        INFINITE_DURATION,
        ge=1,
        description="Duration key (s) used for temporary limits without an acceptable duration.",
    )
    store_limit_set_identifiers: bool = Field(
        True,
        description="Record the {limitSetId: limitSetName} pairs of created groups on the element.",
    )
    ensure_temporary_name_unicity: bool = Field(
        True, description="Suffix clashing temporary limit names with '#<n>'."
    )

    @field_validator("namespace")
    @classmethod
    def _namespace_token(cls, v: str) -> str:
        if not v or any(c.isspace() for c in v):
            raise ValueError("namespace must be a non-empty token without whitespace")
        return v

    @property
    def limit_set_identifiers_key(self) -> str:
        return f"{self.namespace}_OperationalLimitSetIdentifiers"


def load_config(path: Optional[str]) -> ConversionConfig:
    if not path:
        return ConversionConfig()
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config JSON not found: {path}")
    return ConversionConfig.model_validate(json.loads(p.read_text()))
