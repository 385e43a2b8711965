"""Pydantic schemas validating caller input before it reaches the domain."""

from pydantic import BaseModel, Field, field_validator

from .domain import Credentials


class CredentialsIn(BaseModel):
    """Portal login supplied by the caller.

    Attributes:
        username: Portal user name (e-mail address). Surrounding whitespace
            is stripped; must not be empty afterwards.
        password: Portal password, kept verbatim.
    """

    username: str = Field(min_length=1, max_length=254)
    password: str = Field(min_length=1)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Strip the username and reject blank values.

        Raises:
            ValueError: When nothing but whitespace was supplied.
        """
        v2 = v.strip()
        if not v2:
            raise ValueError("USERNAME_REQUIRED")
        return v2

    def to_domain(self) -> Credentials:
        return Credentials(username=self.username, password=self.password)
