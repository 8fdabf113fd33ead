"""
Reference document model

A small tree-structured document host: schema, immutable nodes, resolved
positions, invertible steps and editor state. The input rule engine only
talks to the document through this API.
"""
from inputrules.model.schema import (
    ContentExpr,
    MarkSpec,
    MarkType,
    NodeSpec,
    NodeType,
    Schema,
    basic_schema,
)
from inputrules.model.node import Mark, Node, TransformError
from inputrules.model.resolvedpos import NodeRange, ResolvedPos
from inputrules.model.transform import (
    Mapping,
    ReplaceStep,
    RestructureStep,
    StepMap,
    Transform,
    Wrapper,
    can_change_type,
    can_join,
    find_wrapping,
)
from inputrules.model.state import EditorState, TextSelection, Transaction

__all__ = [
    "ContentExpr",
    "MarkSpec",
    "MarkType",
    "NodeSpec",
    "NodeType",
    "Schema",
    "basic_schema",
    "Mark",
    "Node",
    "TransformError",
    "NodeRange",
    "ResolvedPos",
    "Mapping",
    "ReplaceStep",
    "RestructureStep",
    "StepMap",
    "Transform",
    "Wrapper",
    "can_change_type",
    "can_join",
    "find_wrapping",
    "EditorState",
    "TextSelection",
    "Transaction",
]
