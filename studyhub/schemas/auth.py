from pydantic import BaseModel


class SessionUser(BaseModel):
    id: str
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None

    @property
    def label(self) -> str:
        """Name shown in the header and stored as uploaded_by / asked_by"""
        return self.display_name or self.email or ""


class Session(BaseModel):
    user: SessionUser
    id_token: str
    refresh_token: str | None = None


class SignInRedirect(BaseModel):
    provider: str
    auth_uri: str
    session_id: str
