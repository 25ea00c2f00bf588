"""
Simulator configuration.
"""
import os
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator
from typing_extensions import Self

from atomicsim.exceptions import ConfigurationError

DEFAULT_PARTICIPANT_COUNT = 4
DEFAULT_PAYLOAD = "Sample Transaction"
DEFAULT_TRANSACTION_ID_PREFIX = "TX"
DEFAULT_SESSION_MAX_AGE_SECONDS = 3600.0

_ENVIRONMENT_VARIABLES = {
    "participant_count": "ATOMICSIM_PARTICIPANT_COUNT",
    "default_payload": "ATOMICSIM_DEFAULT_PAYLOAD",
    "transaction_id_prefix": "ATOMICSIM_TRANSACTION_ID_PREFIX",
    "session_max_age_seconds": "ATOMICSIM_SESSION_MAX_AGE",
}


class SimulatorSettings(BaseModel):
    """Settings used when building sessions and their coordinators."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    participant_count: int = Field(default=DEFAULT_PARTICIPANT_COUNT, ge=1)
    default_payload: str = DEFAULT_PAYLOAD
    transaction_id_prefix: str = Field(default=DEFAULT_TRANSACTION_ID_PREFIX, min_length=1)
    session_max_age_seconds: float = Field(default=DEFAULT_SESSION_MAX_AGE_SECONDS, gt=0)

    @field_validator("transaction_id_prefix")
    @classmethod
    def _strip_prefix(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("transaction_id_prefix must not be blank")
        return value

    @classmethod
    def build(cls, **values: Any) -> Self:
        """
        Construct settings, reporting invalid values as ConfigurationError.

        Args:
            **values: Field overrides

        Returns:
            Validated settings
        """
        try:
            return cls(**values)
        except PydanticValidationError as e:
            raise ConfigurationError("Invalid simulator settings", e) from e

    @classmethod
    def from_environment(cls) -> Self:
        """
        Build settings from environment variables.

        Environment variables:
        - ATOMICSIM_PARTICIPANT_COUNT: Participants per coordinator
        - ATOMICSIM_DEFAULT_PAYLOAD: Payload used when a run gives none
        - ATOMICSIM_TRANSACTION_ID_PREFIX: Prefix of generated transaction IDs
        - ATOMICSIM_SESSION_MAX_AGE: Idle seconds before a session expires
        """
        values: Dict[str, Any] = {}
        for field_name, variable in _ENVIRONMENT_VARIABLES.items():
            raw = os.getenv(variable)
            if raw is not None:
                values[field_name] = raw
        return cls.build(**values)
