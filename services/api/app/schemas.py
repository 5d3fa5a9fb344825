from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


PREFERENCE_CATEGORIES = (
    "naming",
    "organization",
    "documentation",
    "typing",
    "structure",
    "error_handling",
    "practices",
)


class PreferenceTree(BaseModel):
    """
    Profile preferences

    The top-level categories are fixed; their leaves are free-form JSON so
    templates can add keys without a schema change. Unknown categories are
    kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    naming: Optional[Dict[str, Any]] = None
    organization: Optional[Dict[str, Any]] = None
    documentation: Optional[Dict[str, Any]] = None
    typing: Optional[Dict[str, Any]] = None
    structure: Optional[Dict[str, Any]] = None
    error_handling: Optional[Dict[str, Any]] = None
    practices: Optional[Dict[str, Any]] = None

    def to_json_dict(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=True)
        data.update(self.model_extra or {})
        return data


class _ProfileFields(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    languages: Optional[List[str]] = None
    preferences: Optional[PreferenceTree] = None
    custom_rules: Optional[List[str]] = None
    reference_guide_path: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip()


class ProfileCreateRequest(_ProfileFields):
    pass


class ProfileUpdateRequest(_ProfileFields):
    def present_fields(self) -> Dict[str, Any]:
        """
        Fields the caller actually sent, with preferences as a plain dict
        """
        fields = {}
        for key in self.model_fields_set:
            value = getattr(self, key)
            if key == "preferences" and value is not None:
                value = value.to_json_dict()
            fields[key] = value
        return fields


class ProfileResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    author: Optional[str] = None
    languages: List[str] = Field(default_factory=list)
    preferences: Dict[str, Any] = Field(default_factory=dict)
    custom_rules: List[str] = Field(default_factory=list)
    reference_guide_path: Optional[str] = None
    is_builtin: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ProfileCreatedResponse(BaseModel):
    id: int
    message: str = "Profile created successfully"


class MessageResponse(BaseModel):
    message: str


class UserResponse(BaseModel):
    id: int
    github_id: int
    username: str
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[str] = None


class MeResponse(BaseModel):
    user: UserResponse


class GitHubUserPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    login: str
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    name: Optional[str] = None


class DevCreateSessionRequest(BaseModel):
    github_token: Optional[SecretStr] = None
    github_user: Optional[GitHubUserPayload] = None


class DevCreateSessionResponse(BaseModel):
    session_id: str
    user_id: int
    username: str
    expires_at: str


class SeedCounts(BaseModel):
    users: int
    repositories: int
    profiles: int


class SeedResponse(BaseModel):
    message: str
    data: SeedCounts


class DatabaseCounts(BaseModel):
    users: int
    repositories: int
    profiles: int
    sessions: int


class DatabaseStatusResponse(BaseModel):
    database: DatabaseCounts
