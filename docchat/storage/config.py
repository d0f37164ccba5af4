"""Supabase connection settings loaded from the environment."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, model_validator

from docchat.errors import ConfigurationError

load_dotenv()


class SupabaseConfig(BaseModel):
    """Configuration for the Supabase backend.

    Attributes:
        url: Project URL, e.g. https://<project>.supabase.co.
        anon_key: Public key used for auth calls on behalf of users.
        service_role_key: Server-side key used for table access. Every
            query is filtered by the authenticated user's id.
    """

    url: str = Field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    anon_key: str = Field(default_factory=lambda: os.getenv("SUPABASE_ANON_KEY", ""))
    service_role_key: str = Field(
        default_factory=lambda: os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    )

    @model_validator(mode="after")
    def validate_credentials(self) -> "SupabaseConfig":
        """Require URL and both keys."""
        missing = [
            name
            for name, value in (
                ("SUPABASE_URL", self.url),
                ("SUPABASE_ANON_KEY", self.anon_key),
                ("SUPABASE_SERVICE_ROLE_KEY", self.service_role_key),
            )
            if not value.strip()
        ]
        if missing:
            raise ValueError(f"Supabase credentials missing: {', '.join(missing)}")
        return self


def get_supabase_config() -> SupabaseConfig:
    """Create Supabase configuration from environment.

    Raises:
        ConfigurationError: If the URL or a key is not set.
    """
    try:
        return SupabaseConfig()
    except ValidationError as e:
        error = e.errors()[0]
        # Report the validator message without pydantic's "Value error, " prefix
        raise ConfigurationError(str(error.get("ctx", {}).get("error", error["msg"]))) from e
