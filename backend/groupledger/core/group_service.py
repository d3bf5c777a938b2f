"""
Group Service - groups and their membership.

Responsibilities:
- Create groups with the creator as first member
- Add and remove members (creator only)
- Delete groups with everything they own (creator only)
"""
import logging
from typing import Dict, List, Optional, Tuple

from groupledger.errors import (
    InvalidInputError,
    LedgerError,
    MembershipError,
    NotFoundError,
    PermissionDeniedError,
)
from groupledger.groups.models import Group
from groupledger.users.model import Profile
from groupledger.utils.permissions import is_creator

logger = logging.getLogger(__name__)


class GroupService:
    """Service for group lifecycle and membership."""

    MAX_NAME_LENGTH = 100

    def __init__(self, store):
        self.store = store

    def _get_group(self, group_id: str) -> Group:
        group = self.store.get_group(group_id)
        if not group:
            raise NotFoundError("Group not found")
        return group

    def require_member(self, group_id: str, user_id: str) -> None:
        if not self.store.is_member(group_id, user_id):
            raise MembershipError("User is not a member of this group")

    def _member_profiles(self, group_id: str) -> List[Profile]:
        profiles = []
        for user_id in self.store.list_member_ids(group_id):
            profiles.append(self.store.get_profile(user_id) or Profile(id=user_id, email=""))
        return profiles

    def create_group(
        self,
        name: str,
        created_by: str,
        description: Optional[str] = None,
    ) -> Tuple[Optional[Group], Optional[LedgerError]]:
        name = name.strip() if isinstance(name, str) else ""
        if not name:
            return None, InvalidInputError("Group name is required")
        if len(name) > self.MAX_NAME_LENGTH:
            return None, InvalidInputError(f"Group name must be less than {self.MAX_NAME_LENGTH} characters")

        try:
            group = self.store.create_group(name, (description or "").strip() or None, created_by)
            self.store.add_member(group.id, created_by)
        except LedgerError as e:
            return None, e

        logger.info("Group %s created by %s", group.id, created_by)
        return group, None

    def get_group_details(self, group_id: str, user_id: str) -> Tuple[Optional[Dict], Optional[LedgerError]]:
        try:
            self.require_member(group_id, user_id)
            group = self._get_group(group_id)
            members = self._member_profiles(group_id)
        except LedgerError as e:
            return None, e
        return {"group": group, "members": members}, None

    def get_user_groups(self, user_id: str) -> Tuple[Optional[List[Group]], Optional[LedgerError]]:
        try:
            return self.store.list_user_groups(user_id), None
        except LedgerError as e:
            return None, e

    def add_member(
        self,
        group_id: str,
        requested_by: str,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Tuple[Optional[Profile], Optional[LedgerError]]:
        """Add a member by user ID or by profile email. Creator only."""
        try:
            group = self._get_group(group_id)
            if not is_creator(requested_by, group):
                raise PermissionDeniedError("Only the group creator can add members")

            if email:
                profile = self.store.get_profile_by_email(email)
                if not profile:
                    raise NotFoundError("User not found with this email")
            elif user_id:
                profile = self.store.get_profile(user_id) or Profile(id=user_id, email="")
            else:
                raise InvalidInputError("A user id or email is required")

            if self.store.is_member(group_id, profile.id):
                raise InvalidInputError("User is already a member of this group")

            self.store.add_member(group_id, profile.id)
        except LedgerError as e:
            return None, e

        logger.info("User %s added to group %s", profile.id, group_id)
        return profile, None

    def remove_member(
        self,
        group_id: str,
        member_user_id: str,
        requested_by: str,
    ) -> Tuple[bool, Optional[LedgerError]]:
        """
        Remove a member. Creator only; the creator cannot be removed.

        Existing balances that involve the member are kept.
        """
        try:
            group = self._get_group(group_id)
            if not is_creator(requested_by, group):
                raise PermissionDeniedError("Only the group creator can remove members")
            if is_creator(member_user_id, group):
                raise PermissionDeniedError("Group creator cannot be removed")
            if not self.store.is_member(group_id, member_user_id):
                raise NotFoundError("User is not a member of this group")
            self.store.remove_member(group_id, member_user_id)
        except LedgerError as e:
            return False, e

        logger.info("User %s removed from group %s", member_user_id, group_id)
        return True, None

    def delete_group(self, group_id: str, user_id: str) -> Tuple[bool, Optional[LedgerError]]:
        """Delete a group with its memberships, expenses, balances and settlements."""
        try:
            group = self._get_group(group_id)
            if not is_creator(user_id, group):
                raise PermissionDeniedError("Only the group creator can delete the group")
            with self.store.group_scope(group_id):
                self.store.delete_group(group_id)
            self.store.discard_group_lock(group_id)
        except LedgerError as e:
            return False, e

        logger.info("Group %s deleted by %s", group_id, user_id)
        return True, None
