"""Pydantic models for the websocket envelope and each inbound event payload."""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, StrictStr


class EventEnvelope(BaseModel):
    event: str = Field(min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class JoinRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100, validation_alias=AliasChoices("name", "username"))


class CreateRoomRequest(BaseModel):
    pass


class RoomRequest(BaseModel):
    code: str = Field(min_length=1, validation_alias=AliasChoices("code", "roomCode"))


class SelectCardRequest(RoomRequest):
    card: Union[StrictInt, StrictStr]


class TransferHostRequest(RoomRequest):
    new_host_id: str = Field(min_length=1, validation_alias=AliasChoices("newHostId", "new_host_id"))


class KickUserRequest(RoomRequest):
    user_id: str = Field(min_length=1, validation_alias=AliasChoices("userId", "user_id"))


class SettingsPatch(BaseModel):
    model_config = ConfigDict(extra="ignore")

    only_host_can_reveal: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("onlyHostCanReveal", "only_host_can_reveal"),
    )
    allow_reveal_with_missing_votes: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("allowRevealWithMissingVotes", "allow_reveal_with_missing_votes"),
    )


class UpdateSettingsRequest(RoomRequest):
    settings: SettingsPatch = Field(default_factory=SettingsPatch)
