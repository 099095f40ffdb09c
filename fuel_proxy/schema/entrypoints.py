"""
Root Query / Mutation types.

``dryRun`` is exposed on both roots with identical arguments and result. The
resolver reads the ``DryRunService`` and ``Config`` from the execution
context (a dict with keys ``service`` and ``config``).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from graphql import (GraphQLArgument, GraphQLBoolean, GraphQLField,
                     GraphQLList, GraphQLNonNull, GraphQLObjectType,
                     GraphQLSchema)

from .objects import (ChainInfoType, DryRunTransactionExecutionStatusType,
                      chain_info)
from .scalars import HexStringScalar, U64Scalar


async def resolve_dry_run(
    _root: Any,
    info,
    txs: Optional[List[Any]] = None,
    utxoValidation: Optional[bool] = False,
    gasPrice: Optional[int] = 0,
) -> List[Dict[str, Any]]:
    service = info.context["service"]
    return await service.resolve(txs, utxoValidation, gasPrice)


def resolve_chain(_root: Any, info) -> Dict[str, Any]:
    return chain_info(info.context["config"])


def _dry_run_field() -> GraphQLField:
    return GraphQLField(
        GraphQLNonNull(GraphQLList(GraphQLNonNull(DryRunTransactionExecutionStatusType))),
        args={
            "txs": GraphQLArgument(GraphQLList(GraphQLNonNull(HexStringScalar)), default_value=[]),
            "utxoValidation": GraphQLArgument(GraphQLBoolean, default_value=False),
            "gasPrice": GraphQLArgument(U64Scalar, default_value=0),
        },
        resolve=resolve_dry_run,
        description="Simulate transactions against the FuelVM precompile without committing state.",
    )


QueryType = GraphQLObjectType(
    "Query",
    lambda: {
        "dryRun": _dry_run_field(),
        "chain": GraphQLField(GraphQLNonNull(ChainInfoType), resolve=resolve_chain),
    },
)

MutationType = GraphQLObjectType(
    "Mutation",
    lambda: {"dryRun": _dry_run_field()},
)


def build_schema() -> GraphQLSchema:
    return GraphQLSchema(query=QueryType, mutation=MutationType)


__all__ = ["QueryType", "MutationType", "build_schema", "resolve_dry_run", "resolve_chain"]
