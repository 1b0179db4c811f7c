from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

# --- Descriptor Models ---

class _Descriptor(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Wire form, with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")


class ToolDefinition(_Descriptor):
    name: str
    description: str
    input_schema: Dict[str, Any] = Field(alias="inputSchema")

    @property
    def required_params(self) -> List[str]:
        return list(self.input_schema.get("required", []))


class ResourceDefinition(_Descriptor):
    uri: str
    name: str
    description: str
    mime_type: str = Field(alias="mimeType")


class PromptArgument(_Descriptor):
    name: str
    description: str
    required: bool = False


class PromptDefinition(_Descriptor):
    name: str
    description: str
    arguments: Tuple[PromptArgument, ...] = ()

    @property
    def required_args(self) -> List[str]:
        return [arg.name for arg in self.arguments if arg.required]


# --- Builders ---

def tool(name: str, description: str, properties: Dict[str, Any], required: Tuple[str, ...] = ()) -> ToolDefinition:
    """Shorthand for a tool whose input is a flat JSON object."""
    return ToolDefinition(
        name=name,
        description=description,
        inputSchema={"type": "object", "properties": properties, "required": list(required)},
    )


def resource(uri: str, name: str, description: str, mime_type: str = "application/json") -> ResourceDefinition:
    return ResourceDefinition(uri=uri, name=name, description=description, mimeType=mime_type)


def prompt(name: str, description: str, *arguments: Tuple[str, str, bool]) -> PromptDefinition:
    return PromptDefinition(
        name=name,
        description=description,
        arguments=tuple(PromptArgument(name=n, description=d, required=r) for n, d, r in arguments),
    )


# JSON-schema property shorthands used across the tool tables
def prop(type_: Any, description: str, **extra: Any) -> Dict[str, Any]:
    return {"type": type_, "description": description, **extra}


def chain_prop(description: str = "Chain ID") -> Dict[str, Any]:
    return prop("number", description)
