from __future__ import annotations

from enum import Enum
from pathlib import Path
from urllib.parse import urlparse

from pydantic import AliasChoices, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Strategy(str, Enum):
    """How the adapter obtains tokens for SharePoint Online.

    ``username_password`` only works for accounts without MFA.
    """

    DEFAULT = "default"
    CLI = "cli"
    MANAGED_IDENTITY = "managed_identity"
    CLIENT_SECRET = "client_secret"
    CLIENT_CERTIFICATE = "client_certificate"
    USERNAME_PASSWORD = "username_password"


class AuthConfig(BaseSettings):
    """Settings used to build the credential handed to the adapter.

    Values are read from keyword arguments or from the environment, and are
    validated per :class:`Strategy`.

    Environment variables (aliases supported where noted):
        - AUTH_STRATEGY
        - TENANT_ID
        - CLIENT_ID (alias: MANAGED_IDENTITY_CLIENT_ID)
        - CLIENT_SECRET
        - CLIENT_CERTIFICATE_PATH
        - CLIENT_CERTIFICATE_PASSWORD
        - SHAREPOINT_USERNAME
        - SHAREPOINT_PASSWORD
        - AUTHORITY_HOST
    """

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    # The field name is listed in each AliasChoices so that keyword
    # arguments keep working next to the environment aliases.

    strategy: Strategy = Field(
        default=Strategy.DEFAULT,
        validation_alias=AliasChoices("strategy", "AUTH_STRATEGY"),
    )
    tenant_id: str | None = Field(
        default=None, validation_alias=AliasChoices("tenant_id", "TENANT_ID")
    )
    client_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "client_id", "CLIENT_ID", "MANAGED_IDENTITY_CLIENT_ID"
        ),
    )
    client_secret: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("client_secret", "CLIENT_SECRET"),
    )
    certificate_path: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("certificate_path", "CLIENT_CERTIFICATE_PATH"),
    )
    certificate_password: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "certificate_password", "CLIENT_CERTIFICATE_PASSWORD"
        ),
    )
    username: str | None = Field(
        default=None,
        validation_alias=AliasChoices("username", "SHAREPOINT_USERNAME"),
    )
    password: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("password", "SHAREPOINT_PASSWORD"),
    )
    authority: str | None = Field(
        default=None,
        validation_alias=AliasChoices("authority", "AUTHORITY_HOST"),
    )

    @field_validator("certificate_path")
    @classmethod
    def _ensure_existing_path(cls, v: Path | None) -> Path | None:
        if v is not None and not v.exists():
            raise ValueError(f"Path does not exist: {v}")
        return v

    @model_validator(mode="after")
    def _cross_field_validation(self) -> "AuthConfig":
        """Validate required fields for the selected strategy."""
        s = self.strategy
        if s is Strategy.CLIENT_SECRET:
            if not (self.tenant_id and self.client_id and self.client_secret):
                raise ValueError(
                    "client_secret requires tenant_id, client_id, and client_secret."
                )
        elif s is Strategy.CLIENT_CERTIFICATE:
            if not (self.tenant_id and self.client_id and self.certificate_path):
                raise ValueError(
                    "client_certificate requires tenant_id, client_id, and certificate_path."
                )
        elif s is Strategy.USERNAME_PASSWORD:
            if not (self.client_id and self.username and self.password):
                raise ValueError(
                    "username_password requires client_id, username and password."
                )
        # DEFAULT, CLI and MANAGED_IDENTITY are validated by azure-identity at runtime.
        return self


class SharePointSettings(BaseSettings):
    """Site and path settings for a :class:`~sharepointfs.adapter.SharePointAdapter`.

    Environment variables use the ``SHAREPOINT_`` prefix, e.g.
    ``SHAREPOINT_SITE_URL`` and ``SHAREPOINT_PREFIX``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SHAREPOINT_",
        case_sensitive=False,
        extra="ignore",
    )

    site_url: str
    prefix: str | None = None
    auth: AuthConfig = Field(default_factory=AuthConfig)

    @field_validator("site_url")
    @classmethod
    def _ensure_scheme(cls, v: str) -> str:
        # The client context requires an absolute URL
        v = v.rstrip("/")
        if not v.startswith("http"):
            v = f"https://{v}"
        if not urlparse(v).netloc:
            raise ValueError(f"site_url must contain a host: {v}")
        return v

    @property
    def site_path(self) -> str:
        """Server-relative path of the site (``/sites/Team``), empty for the root site."""
        return urlparse(self.site_url).path.rstrip("/")
