"""Pydantic schema for exec module instance configuration."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from radius_exec.exceptions import ConfigurationError

from ..constants import EXEC_TIMEOUT, EXEC_TIMEOUT_MAX, EXEC_TIMEOUT_MIN
from ..radius.dictionary import packet_type_code


class ExecModuleConfig(BaseModel):
    """Validated, read-only settings of one exec module instance."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str | None = Field(
        default=None, description="Instance name; unnamed instances are bare"
    )
    bare: bool = Field(default=False)
    wait: bool = Field(default=True, description="Wait for the program to exit")
    program: str | None = Field(default=None, description="Program line to run")
    input_pairs: str | None = Field(default="request")
    output_pairs: str | None = Field(default=None)
    packet_type: str | None = Field(
        default=None, description="Only run for this Packet-Type"
    )
    shell_escape: bool = Field(default=True)
    timeout: int = Field(default=EXEC_TIMEOUT)
    ntlm_auth_response: bool = Field(
        default=True,
        description="Treat waited output as ntlm_auth NT_KEY and answer MS-CHAPv2",
    )

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not re.fullmatch(r"[A-Za-z0-9_.-]+", v):
            raise ValueError(
                "name must be alphanumeric with dots, hyphens or underscores only"
            )
        return v

    @field_validator("program", "input_pairs", "output_pairs", "packet_type")
    @classmethod
    def _blank_is_unset(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @field_validator("timeout", mode="before")
    @classmethod
    def _default_timeout(cls, v: Any) -> Any:
        # An explicit 0 means "use the default", as an unset value does.
        if v is None or v == 0 or (isinstance(v, str) and v.strip() in ("", "0")):
            return EXEC_TIMEOUT
        return v

    @field_validator("timeout")
    @classmethod
    def _timeout_bounds(cls, v: int) -> int:
        if v < EXEC_TIMEOUT_MIN:
            raise ValueError(f"Timeout '{v}' is too small (minimum: {EXEC_TIMEOUT_MIN})")
        if v > EXEC_TIMEOUT_MAX:
            raise ValueError(f"Timeout '{v}' is too large (maximum: {EXEC_TIMEOUT_MAX})")
        return v

    @field_validator("packet_type")
    @classmethod
    def _known_packet_type(cls, v: str | None) -> str | None:
        if v is not None and packet_type_code(v) is None:
            raise ValueError(
                f"Unknown packet type {v}: see the VALUEs of Packet-Type"
            )
        return v

    @model_validator(mode="after")
    def _cross_field_validation(self) -> ExecModuleConfig:
        if self.input_pairs is None:
            raise ValueError("Must define input pairs for external program")
        if not self.wait and self.output_pairs is not None:
            raise ValueError("Cannot read output pairs if wait=no")
        return self

    @property
    def packet_code(self) -> int:
        """Packet-Type code gating execution, 0 when unrestricted"""
        if self.packet_type is None:
            return 0
        return packet_type_code(self.packet_type) or 0


def validate_module_config(
    payload: Mapping[str, Any], *, name: str | None = None
) -> ExecModuleConfig:
    """Validate raw options (e.g. a config section) into an ExecModuleConfig.

    Raises:
        ConfigurationError: carrying the first offending field
    """
    data = dict(payload)
    if name is not None:
        data.setdefault("name", name)
    data.setdefault("bare", data.get("name") is None)
    try:
        return ExecModuleConfig.model_validate(data)
    except PydanticValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        loc = first.get("loc") or ()
        field = str(loc[0]) if loc else None
        message = str(first.get("msg", exc)).removeprefix("Value error, ")
        label = name or data.get("name") or "exec"
        raise ConfigurationError(f"exec ({label}): {message}", field=field) from exc


__all__ = ["ExecModuleConfig", "validate_module_config"]
