"""Resolves the permission tier of a caller from the configured identities."""

import logging

from keyauth.domain.models.identity import Caller, IdentityConfig, Tier

logger = logging.getLogger(__name__)


class Authorizer:
    """Maps callers to tiers: admin by identity, manager by identity or role."""

    def __init__(self, identity_config: IdentityConfig):
        self.identity_config = identity_config
        if not identity_config.manager_role_ids:
            logger.warning("No management role ids configured; only admins have manager permissions.")

    def resolve_tier(self, caller: Caller) -> Tier:
        if caller.user_id in self.identity_config.admin_ids:
            return Tier.ADMIN
        # No role context (e.g. direct messages) means no role-based privilege.
        if caller.role_ids and not caller.role_ids.isdisjoint(self.identity_config.manager_role_ids):
            return Tier.MANAGER
        return Tier.USER

    def is_allowed(self, caller: Caller, required: Tier) -> bool:
        return self.resolve_tier(caller) >= required
