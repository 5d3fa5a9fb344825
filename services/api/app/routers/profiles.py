import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from services.shared.profiles import (
    BuiltinProfileError,
    DuplicateProfileNameError,
    ProfileError,
    ProfileNotFoundError,
    ProfileValidationError,
    create_profile,
    delete_profile,
    get_profile,
    list_profiles,
    update_profile,
)

from ..deps import get_session
from ..schemas import (
    MessageResponse,
    ProfileCreatedResponse,
    ProfileCreateRequest,
    ProfileResponse,
    ProfileUpdateRequest,
)


logger = logging.getLogger("api.profiles")

router = APIRouter(prefix="/profiles", tags=["profiles"])

_STATUS_BY_ERROR = (
    (ProfileNotFoundError, status.HTTP_404_NOT_FOUND),
    (BuiltinProfileError, status.HTTP_403_FORBIDDEN),
    (DuplicateProfileNameError, status.HTTP_400_BAD_REQUEST),
    (ProfileValidationError, status.HTTP_400_BAD_REQUEST),
)


def _as_http_exception(exc: ProfileError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.get("", response_model=List[ProfileResponse])
def get_profiles(db=Depends(get_session)):
    """
    List all profiles, built-in first, then by name
    """
    return list_profiles(db)


@router.get("/{profile_id}", response_model=ProfileResponse)
def get_profile_by_id(profile_id: int, db=Depends(get_session)):
    try:
        return get_profile(db, profile_id)
    except ProfileError as exc:
        raise _as_http_exception(exc) from exc


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProfileCreatedResponse)
def post_profile(body: ProfileCreateRequest, db=Depends(get_session)):
    """
    Create a user-defined profile

    Args:
        body (ProfileCreateRequest): name and preferences are required

    Returns:
        dict with the new id
    """
    try:
        profile_id = create_profile(
            db,
            name=body.name,
            preferences=body.preferences.to_json_dict() if body.preferences is not None else None,
            description=body.description,
            author=body.author,
            languages=body.languages,
            custom_rules=body.custom_rules,
            reference_guide_path=body.reference_guide_path,
        )
    except ProfileError as exc:
        raise _as_http_exception(exc) from exc

    return {"id": profile_id, "message": "Profile created successfully"}


@router.put("/{profile_id}", response_model=MessageResponse)
def put_profile(profile_id: int, body: ProfileUpdateRequest, db=Depends(get_session)):
    """
    Partially update a user-defined profile

    Only fields present in the body are written
    """
    try:
        update_profile(db, profile_id, body.present_fields())
    except ProfileError as exc:
        raise _as_http_exception(exc) from exc

    return {"message": "Profile updated successfully"}


@router.delete("/{profile_id}", response_model=MessageResponse)
def remove_profile(profile_id: int, db=Depends(get_session)):
    try:
        delete_profile(db, profile_id)
    except ProfileError as exc:
        raise _as_http_exception(exc) from exc

    return {"message": "Profile deleted successfully"}
