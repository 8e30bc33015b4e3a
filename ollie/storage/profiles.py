"""
Current child profile lookup from local storage.
"""

import json
from typing import Any, Dict, Optional

from ollie.chat.context import ChildProfile
from ollie.chat.models import AgeGroup
from ollie.shared.config import settings
from ollie.shared.exceptions import StorageError
from ollie.shared.logging import get_logger
from ollie.storage.kv import KeyValueStore

logger = get_logger(__name__)

# Ages 4-7 are YOUNG, 8-12 OLDER
YOUNG_MAX_AGE = 7


def _age_group(profile: Dict[str, Any]) -> AgeGroup:
    raw = profile.get("ageGroup")
    if raw in (AgeGroup.YOUNG.value, AgeGroup.OLDER.value):
        return AgeGroup(raw)

    age = profile.get("age")
    if isinstance(age, (int, float)) and not isinstance(age, bool):
        return AgeGroup.YOUNG if age <= YOUNG_MAX_AGE else AgeGroup.OLDER

    return AgeGroup.OLDER


def resolve_child_profile(store: Optional[KeyValueStore]) -> ChildProfile:
    """
    Derive child id and age group from the stored current-profile pointer.

    The pointer may hold a bare id or a JSON profile object. Missing or
    malformed data resolves to an anonymous OLDER learner; never raises.
    """
    default = ChildProfile()
    if store is None:
        return default

    try:
        pointer_raw = store.get(settings.storage.current_profile_key)
        children_raw = store.get(settings.storage.children_key)
    except StorageError as e:
        logger.warning(f"Profile lookup failed: {e}")
        return default

    if not pointer_raw:
        return default

    try:
        pointer = json.loads(pointer_raw)
    except json.JSONDecodeError:
        pointer = pointer_raw

    if isinstance(pointer, dict):
        current_id = pointer.get("id")
        profile = pointer
    else:
        current_id = pointer
        profile = None

    if current_id is None or isinstance(current_id, (list, dict)):
        return default

    if children_raw:
        try:
            children = json.loads(children_raw)
        except json.JSONDecodeError:
            logger.warning("Malformed child profile list in storage")
            children = []
        if isinstance(children, list):
            for child in children:
                if isinstance(child, dict) and str(child.get("id")) == str(current_id):
                    profile = child
                    break

    if profile is None:
        return ChildProfile(child_id=str(current_id))

    return ChildProfile(child_id=str(current_id), age_group=_age_group(profile))
