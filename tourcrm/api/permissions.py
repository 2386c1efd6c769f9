"""
Permission checks for role-based access.

Key helpers:
- is_admin(current_user) / is_viewer(current_user)
- viewer_cities(event, current_user): cities a city guide is assigned to
- can_view_event(event, current_user)
- can_view_lead(lead, current_user): admins always, managers on assigned or created leads
- can_edit_lead(lead, current_user): admins always, managers on assigned leads
- ensure_* variants raise HTTPException(403)
"""
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status


def is_admin(current_user: Optional[Dict[str, Any]]) -> bool:
    return bool(current_user and current_user.get("role") == "admin")


def is_viewer(current_user: Optional[Dict[str, Any]]) -> bool:
    return bool(current_user and current_user.get("role") == "viewer")


def viewer_cities(event, current_user: Optional[Dict[str, Any]]) -> List[str]:
    """Cities of ``event`` whose guide is the current user, in route order."""
    if event is None or current_user is None:
        return []
    guides = getattr(event, "city_guides", None) or {}
    uid = str(current_user.get("id"))
    return [city for city in (event.cities or []) if str(guides.get(city)) == uid]


def can_view_event(event, current_user: Optional[Dict[str, Any]]) -> bool:
    if event is None or current_user is None:
        return False
    if not is_viewer(current_user):
        return True
    return bool(viewer_cities(event, current_user))


def ensure_can_view_event(event, current_user: Optional[Dict[str, Any]]) -> None:
    if not can_view_event(event, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: You are not assigned to this event",
        )


def can_view_lead(lead, current_user: Optional[Dict[str, Any]]) -> bool:
    """Admins see every lead; managers those assigned to or created by them."""
    if lead is None or current_user is None:
        return False
    if is_admin(current_user):
        return True
    if current_user.get("role") != "manager":
        return False
    uid = current_user.get("id")
    return uid is not None and uid in (lead.assigned_user_id, lead.created_by_user_id)


def can_edit_lead(lead, current_user: Optional[Dict[str, Any]]) -> bool:
    if current_user is None:
        return False
    if is_admin(current_user):
        return True
    if current_user.get("role") != "manager" or lead is None:
        return False
    return getattr(lead, "assigned_user_id", None) == current_user.get("id")


def ensure_can_edit_lead(lead, current_user: Optional[Dict[str, Any]]) -> None:
    if not can_edit_lead(lead, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: You can only edit tourists from your assigned leads",
        )
