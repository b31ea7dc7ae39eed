from src.domain.entities import Action, TeamRole
from src.rules.models import RbacRules, Rules


class PolicyEngine:
    def __init__(self, rules: Rules | RbacRules):
        self.rbac = rules.rbac if isinstance(rules, Rules) else rules

    def can_perform(
        self,
        role: TeamRole | None,
        action: Action,
        *,
        is_owner: bool = False,
    ) -> bool:
        """
        Check whether a team role may perform an action.

        Order of precedence:
        1. No membership (role None) allows nothing, not even "view".
        2. Role-based grants from rules.rbac.roles.
        3. Self-ownership override for rules.rbac.owner_actions.
        """
        if role is None:
            return False

        if action in self.rbac.roles.get(role, []):
            return True

        if is_owner and action in self.rbac.owner_actions:
            return True

        return False

    def can_view_okr(self, role: TeamRole | None, okr_type: str, is_owner: bool) -> bool:
        # Personal OKRs are visible to their owner and team admins only.
        if not self.can_perform(role, "view"):
            return False
        if okr_type == "personal":
            return is_owner or role == "admin"
        return True
