"""Client Event Schemas — Pydantic models for the three mutation requests.

Invariants:
    - `type` selects exactly one payload model (discriminated union)
    - Issue ids are strict integers ("1" is not issue 1)
    - UpdateFields forbids keys other than title/description/status
    - Comment text must be present; its content is stored as given
    - Title emptiness is NOT checked here: the core raises the domain error

Design Decisions:
    - camelCase wire names via aliases, snake_case attributes in Python
    - UpdateFields dumped with exclude_unset: absent keys stay absent so the
      core leaves those attributes unchanged
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, TypeAdapter


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateIssuePayload(_WireModel):
    title: str | None = None
    description: str | None = None
    created_by: str | None = Field(None, alias="createdBy")


class UpdateFields(_WireModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    status: str | None = None


class UpdateIssuePayload(_WireModel):
    id: StrictInt
    fields: UpdateFields
    updated_by: str | None = Field(None, alias="updatedBy")

    def changed_fields(self) -> dict:
        return self.fields.model_dump(exclude_unset=True)


class CommentInput(_WireModel):
    author: str | None = None
    text: str


class AddCommentPayload(_WireModel):
    id: StrictInt
    comment: CommentInput


class CreateIssueEvent(_WireModel):
    type: Literal["create_issue"]
    payload: CreateIssuePayload


class UpdateIssueEvent(_WireModel):
    type: Literal["update_issue"]
    payload: UpdateIssuePayload


class AddCommentEvent(_WireModel):
    type: Literal["add_comment"]
    payload: AddCommentPayload


ClientEvent = Annotated[
    Union[CreateIssueEvent, UpdateIssueEvent, AddCommentEvent],
    Field(discriminator="type"),
]

client_event_adapter: TypeAdapter[ClientEvent] = TypeAdapter(ClientEvent)
