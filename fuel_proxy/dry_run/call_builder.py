"""
Builds the EVM call that asks the FuelVM precompile to dry-run one transaction.

    from = relayer, to = precompile, data = selector ‖ raw tx bytes
"""

from __future__ import annotations

from ..types import HexTransaction, PrecompileCallMessage, PrecompileConfig


class PrecompileCallBuilder:
    def __init__(self, config: PrecompileConfig):
        if len(config.selector) != 4:
            raise ValueError("precompile selector must be exactly 4 bytes")
        self.config = config

    def build(self, tx: HexTransaction) -> PrecompileCallMessage:
        return PrecompileCallMessage(
            sender=self.config.relayer_address,
            to=self.config.precompile_address,
            data=self.config.selector + tx.raw,
        )


__all__ = ["PrecompileCallBuilder"]
