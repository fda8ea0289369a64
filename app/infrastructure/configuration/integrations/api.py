"""Backend REST API integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class ApiSettings(IntegrationSettings):
    """Connection settings for the notes/tasks backend.

    Environment Variables:
        API_BASE_URL: Backend root URL without version (default: http://localhost:3000)
        API_VERSION: Version segment appended to the base URL (default: v1)
        API_TIMEOUT_SECONDS: Per-request timeout (default: 10)
        TOKEN_LIFETIME_SECONDS: Assumed lifetime of an access token (default: 3600)
        TOKEN_REFRESH_THRESHOLD_SECONDS: Refresh tokens this close to expiry (default: 300)

    Example:
        ```python
        from infrastructure.configuration import settings

        client = ApiClient(base_url=settings.api.versioned_base_url)
        ```
    """

    API_BASE_URL: str = Field(default="http://localhost:3000", alias="API_BASE_URL")
    API_VERSION: str = Field(default="v1", alias="API_VERSION")
    API_TIMEOUT_SECONDS: float = Field(default=10.0, alias="API_TIMEOUT_SECONDS")
    TOKEN_LIFETIME_SECONDS: int = Field(default=3600, alias="TOKEN_LIFETIME_SECONDS")
    TOKEN_REFRESH_THRESHOLD_SECONDS: int = Field(
        default=300, alias="TOKEN_REFRESH_THRESHOLD_SECONDS"
    )

    @property
    def versioned_base_url(self) -> str:
        """Base URL with the API version segment, without a trailing slash."""
        return f"{self.API_BASE_URL.rstrip('/')}/{self.API_VERSION}"
