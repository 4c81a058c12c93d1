"""
Tool types for function calling support.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ToolDefinition(BaseModel):
    """Tool the model may call.

    Example:
        >>> tool = ToolDefinition.define(
        ...     name="get_weather",
        ...     description="Get weather for a city",
        ...     input_schema={
        ...         "type": "object",
        ...         "properties": {"city": {"type": "string"}},
        ...         "required": ["city"],
        ...     },
        ... )
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str = Field(description="Tool name")
    description: str | None = Field(default=None, description="What the tool does")
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON Schema for the tool input",
    )

    @classmethod
    def define(
        cls,
        name: str,
        description: str | None = None,
        input_schema: dict[str, Any] | None = None,
    ) -> ToolDefinition:
        """Create a tool definition.

        Args:
            name: Tool name
            description: Tool description
            input_schema: JSON Schema for the input; defaults to an empty object

        Returns:
            ToolDefinition instance
        """
        return cls(
            name=name,
            description=description,
            input_schema=input_schema or {"type": "object", "properties": {}},
        )


class ToolChoice(BaseModel):
    """How the model should use the provided tools.

    - auto: model decides
    - any: model must use one of the tools
    - tool: model must use the named tool
    - none: model must not use tools
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["auto", "any", "tool", "none"] = "auto"
    name: str | None = Field(default=None, description="Tool name when type is 'tool'")
    disable_parallel_tool_use: bool | None = None

    @model_validator(mode="after")
    def _check_name(self) -> ToolChoice:
        if self.type == "tool" and not self.name:
            raise ValueError("tool_choice of type 'tool' requires a tool name")
        if self.type != "tool" and self.name is not None:
            raise ValueError(f"tool_choice of type '{self.type}' does not take a name")
        return self

    @classmethod
    def auto(cls) -> ToolChoice:
        return cls(type="auto")

    @classmethod
    def any(cls) -> ToolChoice:
        return cls(type="any")

    @classmethod
    def tool(cls, name: str) -> ToolChoice:
        return cls(type="tool", name=name)

    @classmethod
    def none(cls) -> ToolChoice:
        return cls(type="none")
