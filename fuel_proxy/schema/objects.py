"""
GraphQL object types.

Resolvers hand back plain dicts keyed by field name (see
``fuel_proxy.dry_run.encoder``), so most fields use graphql-core's default
resolver.
"""

from __future__ import annotations

from typing import Any, Dict

from graphql import (GraphQLField, GraphQLID, GraphQLInt, GraphQLList,
                     GraphQLNonNull, GraphQLObjectType, GraphQLString,
                     GraphQLUnionType)

from ..dry_run.encoder import FAILURE_TYPENAME, SUCCESS_TYPENAME
from .scalars import Bytes32Scalar, HexStringScalar, U64Scalar

# Limits advertised by the FuelVM precompile.
CONSENSUS_PARAMETERS_VERSION = 1
MAX_SCRIPT_LENGTH = 102400
MAX_SCRIPT_DATA_LENGTH = 102400
CONTRACT_MAX_SIZE = 102400
MAX_STORAGE_SLOTS = 1760


def _nn(t):
    return GraphQLNonNull(t)


# -------------------------------- dry run ----------------------------------

ReceiptType = GraphQLObjectType(
    "Receipt",
    lambda: {
        "receiptType": GraphQLField(_nn(GraphQLString)),
        "data": GraphQLField(_nn(HexStringScalar)),
    },
    description="Record emitted by simulated execution.",
)

DryRunSuccessStatusType = GraphQLObjectType(
    SUCCESS_TYPENAME,
    lambda: {"returnData": GraphQLField(_nn(HexStringScalar))},
)

DryRunFailureStatusType = GraphQLObjectType(
    FAILURE_TYPENAME,
    lambda: {
        "reason": GraphQLField(_nn(GraphQLString)),
        "revertData": GraphQLField(_nn(HexStringScalar)),
    },
)


def _resolve_status_type(value: Dict[str, Any], _info, _type) -> str:
    return value["__typename"]


DryRunTransactionStatusType = GraphQLUnionType(
    "DryRunTransactionStatus",
    [DryRunSuccessStatusType, DryRunFailureStatusType],
    resolve_type=_resolve_status_type,
)

DryRunTransactionExecutionStatusType = GraphQLObjectType(
    "DryRunTransactionExecutionStatus",
    lambda: {
        "id": GraphQLField(_nn(GraphQLID)),
        "status": GraphQLField(_nn(DryRunTransactionStatusType)),
        "receipts": GraphQLField(_nn(GraphQLList(_nn(ReceiptType)))),
        "totalGas": GraphQLField(_nn(U64Scalar)),
        "totalFee": GraphQLField(_nn(U64Scalar)),
    },
)


# -------------------------------- chain ------------------------------------

ScriptParametersType = GraphQLObjectType(
    "ScriptParameters",
    lambda: {
        "maxScriptLength": GraphQLField(_nn(U64Scalar)),
        "maxScriptDataLength": GraphQLField(_nn(U64Scalar)),
    },
)

ContractParametersType = GraphQLObjectType(
    "ContractParameters",
    lambda: {
        "contractMaxSize": GraphQLField(_nn(U64Scalar)),
        "maxStorageSlots": GraphQLField(_nn(U64Scalar)),
    },
)

ConsensusParametersType = GraphQLObjectType(
    "ConsensusParameters",
    lambda: {
        "version": GraphQLField(_nn(GraphQLInt)),
        "chainId": GraphQLField(_nn(U64Scalar)),
        "baseAssetId": GraphQLField(_nn(Bytes32Scalar)),
        "scriptParams": GraphQLField(_nn(ScriptParametersType)),
        "contractParams": GraphQLField(_nn(ContractParametersType)),
    },
)

ChainInfoType = GraphQLObjectType(
    "ChainInfo",
    lambda: {
        "name": GraphQLField(_nn(GraphQLString)),
        "consensusParameters": GraphQLField(_nn(ConsensusParametersType)),
    },
)


def consensus_parameters(config) -> Dict[str, Any]:
    return {
        "version": CONSENSUS_PARAMETERS_VERSION,
        "chainId": config.chain_id,
        "baseAssetId": config.base_asset_id,
        "scriptParams": {
            "maxScriptLength": MAX_SCRIPT_LENGTH,
            "maxScriptDataLength": MAX_SCRIPT_DATA_LENGTH,
        },
        "contractParams": {
            "contractMaxSize": CONTRACT_MAX_SIZE,
            "maxStorageSlots": MAX_STORAGE_SLOTS,
        },
    }


def chain_info(config) -> Dict[str, Any]:
    return {"name": config.chain_name, "consensusParameters": consensus_parameters(config)}


__all__ = [
    "ReceiptType",
    "DryRunSuccessStatusType",
    "DryRunFailureStatusType",
    "DryRunTransactionStatusType",
    "DryRunTransactionExecutionStatusType",
    "ScriptParametersType",
    "ContractParametersType",
    "ConsensusParametersType",
    "ChainInfoType",
    "chain_info",
    "consensus_parameters",
]
