# src/grandpa/config.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ChainConfig(BaseModel):
    """
    Per-chain parameters of the bridged (source) chain.

    The SCALE schema of a justification is fixed, but the width of the
    block number inside votes depends on the chain's `BlockNumber` type:

        - u64 → block_number_bytes = 8  (default, test runtimes)
        - u32 → block_number_bytes = 4  (most production relay chains)

    Header numbers are always compact-encoded and are not affected.

    `max_justification_size` is the caller-side bound on proof size. The
    verifier itself performs no size-based defense; FinalPredicate applies
    this bound before calling it.
    """

    block_number_bytes: int = Field(
        default=8,
        description="Width in bytes of a fixed-size block number (4 or 8).",
    )

    max_justification_size: Optional[int] = Field(
        default=None,
        description="Reject raw justifications longer than this many bytes.",
    )

    class Config:
        frozen = True

    @field_validator("block_number_bytes")
    @classmethod
    def _check_number_width(cls, v: int) -> int:
        if v not in (4, 8):
            raise ValueError(f"block_number_bytes must be 4 or 8, got {v}")
        return v

    @field_validator("max_justification_size")
    @classmethod
    def _check_max_size(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("max_justification_size must be positive")
        return v

    @property
    def max_block_number(self) -> int:
        return (1 << (8 * self.block_number_bytes)) - 1


DEFAULT_CHAIN_CONFIG = ChainConfig()
