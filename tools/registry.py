# =============================================================================
# tools/registry.py  —  Explicit Tool Registry (name → spec → handler)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Holds the static table of tools the server exposes.  Each entry is a
#   ToolSpec: the externally visible name, the description the LLM reads,
#   and the async handler bound to live gateways.
#
# WHY AN EXPLICIT TABLE (and not just @mcp.tool() on module functions)?
#   The handlers need gateways that only exist after configuration and
#   credentials are loaded at startup.  Building the table explicitly at
#   that point keeps the tool list inspectable as plain data — tests and
#   the discovery listing read it without starting a server.
#
# PARAMETER SCHEMA:
#   Derived from the handler's signature.  Parameters are annotated with
#   typing.Annotated[..., pydantic.Field(description=...)], which is also
#   what FastMCP reads to build the JSON schema it advertises over MCP.
# =============================================================================

import inspect
import types
import typing
from dataclasses import asdict, dataclass, field
from typing import Any, Awaitable, Callable, Iterable, List, Optional

ToolHandler = Callable[..., Awaitable[str]]

_JSON_TYPES = {str: "string", bool: "boolean", int: "integer", float: "number"}


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    type: str
    required: bool
    default: Any = None
    description: str = ""


@dataclass(frozen=True)
class ToolSpec:
    """One externally invocable tool."""

    name: str
    description: str
    handler: ToolHandler
    tags: frozenset[str] = field(default_factory=frozenset)

    def parameters(self) -> list[ParameterSpec]:
        hints = typing.get_type_hints(self.handler, include_extras=True)
        params = []
        for name, param in inspect.signature(self.handler).parameters.items():
            hint = hints.get(name, str)
            required = param.default is inspect.Parameter.empty
            params.append(ParameterSpec(
                name=name,
                type=_json_type(hint),
                required=required,
                default=None if required else param.default,
                description=_description(hint),
            ))
        return params

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": [asdict(p) for p in self.parameters()],
        }


class ToolRegistry:
    """Insertion-ordered, read-only-after-startup mapping of tools."""

    def __init__(self, tools: Iterable[ToolSpec] = ()) -> None:
        self._tools: dict[str, ToolSpec] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: ToolSpec) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name!r} is already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> ToolSpec:
        try:
            return self._tools[name]
        except KeyError:
            raise KeyError(f"Unknown tool: {name}") from None

    def list(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools)

    def describe(self) -> List[dict[str, Any]]:
        """The discovery listing: name, description, parameter schema."""
        return [tool.describe() for tool in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools


def _unwrap(hint: Any) -> Any:
    if typing.get_origin(hint) is typing.Annotated:
        hint = typing.get_args(hint)[0]
    if typing.get_origin(hint) in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            hint = args[0]
    return hint


def _json_type(hint: Any) -> str:
    return _JSON_TYPES.get(_unwrap(hint), "string")


def _description(hint: Any) -> str:
    if typing.get_origin(hint) is not typing.Annotated:
        return ""
    for meta in typing.get_args(hint)[1:]:
        description: Optional[str] = getattr(meta, "description", None)
        if description:
            return description
    return ""
