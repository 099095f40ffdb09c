"""
Custom GraphQL scalars.

HexString   0x-optional, even-length hex <-> ``fuel_proxy.types.HexString``
U64         unsigned 64-bit integer; serialised as a decimal string, accepts an
            int or a decimal string on input
Bytes32     HexString of exactly 32 bytes
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from graphql import (GraphQLError, GraphQLScalarType, IntValueNode,
                     StringValueNode, ValueNode, print_ast)

from ..types import U64_MAX, HexString, bytes_to_hex


# ------------------------------- HexString ---------------------------------


def _serialize_hex(value: Any) -> str:
    if isinstance(value, HexString):
        return value.hex()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes_to_hex(bytes(value))
    if isinstance(value, str):
        return HexString.parse(value).hex()
    raise GraphQLError(f"HexString cannot represent value: {value!r}")


def _parse_hex_value(value: Any) -> HexString:
    if not isinstance(value, str):
        raise GraphQLError(f"HexString cannot represent a non string value: {value!r}")
    try:
        return HexString.parse(value)
    except ValueError as e:
        raise GraphQLError(f"HexString cannot represent value: {value!r}") from e


def _parse_hex_literal(node: ValueNode, _variables: Optional[Dict[str, Any]] = None) -> HexString:
    if not isinstance(node, StringValueNode):
        raise GraphQLError(f"HexString cannot represent a non string value: {print_ast(node)}", node)
    return _parse_hex_value(node.value)


HexStringScalar = GraphQLScalarType(
    name="HexString",
    description="Hex-encoded bytes, optionally 0x-prefixed; always serialised as lowercase 0x hex.",
    serialize=_serialize_hex,
    parse_value=_parse_hex_value,
    parse_literal=_parse_hex_literal,
)


# --------------------------------- Bytes32 ---------------------------------


def _serialize_bytes32(value: Any) -> str:
    out = _serialize_hex(value)
    if len(out) != 2 + 64:
        raise GraphQLError(f"Bytes32 cannot represent value: {value!r}")
    return out


def _parse_bytes32_value(value: Any) -> HexString:
    parsed = _parse_hex_value(value)
    if len(parsed.value) != 32:
        raise GraphQLError(f"Bytes32 must be exactly 32 bytes, got {len(parsed.value)}")
    return parsed


def _parse_bytes32_literal(node: ValueNode, _variables: Optional[Dict[str, Any]] = None) -> HexString:
    if not isinstance(node, StringValueNode):
        raise GraphQLError(f"Bytes32 cannot represent a non string value: {print_ast(node)}", node)
    return _parse_bytes32_value(node.value)


Bytes32Scalar = GraphQLScalarType(
    name="Bytes32",
    description="32 bytes, hex-encoded.",
    serialize=_serialize_bytes32,
    parse_value=_parse_bytes32_value,
    parse_literal=_parse_bytes32_literal,
)


# ----------------------------------- U64 -----------------------------------


def _check_u64(num: int, raw: Any) -> int:
    if num < 0 or num > U64_MAX:
        raise GraphQLError(f"U64 cannot represent value outside [0, 2^64): {raw!r}")
    return num


def _serialize_u64(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise GraphQLError(f"U64 cannot represent value: {value!r}")
    return str(_check_u64(int(value), value))


def _parse_u64_value(value: Any) -> int:
    if isinstance(value, bool):
        raise GraphQLError(f"U64 cannot represent value: {value!r}")
    if isinstance(value, int):
        return _check_u64(value, value)
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return _check_u64(int(value), value)
    raise GraphQLError(f"U64 cannot represent value: {value!r}")


def _parse_u64_literal(node: ValueNode, _variables: Optional[Dict[str, Any]] = None) -> int:
    if isinstance(node, IntValueNode):
        return _check_u64(int(node.value), node.value)
    if isinstance(node, StringValueNode):
        return _parse_u64_value(node.value)
    raise GraphQLError(f"U64 cannot represent value: {print_ast(node)}", node)


U64Scalar = GraphQLScalarType(
    name="U64",
    description="Unsigned 64-bit integer, serialised as a decimal string.",
    serialize=_serialize_u64,
    parse_value=_parse_u64_value,
    parse_literal=_parse_u64_literal,
)


__all__ = ["HexStringScalar", "Bytes32Scalar", "U64Scalar", "U64_MAX"]
