"""Commands emitted to the artifact builder.

A BuildCommand is emitted at most once per session (discovery mode).
An EditCommand is emitted once per editing turn that produced a change.
"""
from typing import List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class BuildCommand(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Literal["build"] = "build"
    command_id: str = Field(default="", alias="commandId")
    prompt: str
    preview_instructions: List[str] = Field(alias="previewInstructions")


class EditCommand(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Literal["edit"] = "edit"
    command_id: str = Field(default="", alias="commandId")
    change_description: str = Field(alias="changeDescription")
    app_id: str = Field(default="", alias="appId")


Command = Union[BuildCommand, EditCommand]
