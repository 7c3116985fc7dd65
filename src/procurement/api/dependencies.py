"""Request-scoped dependencies: the calling actor and capability checks."""

from fastapi import Depends, Header, HTTPException

from procurement.access.capabilities import Actor, Capability, Role


def current_actor(
    x_user_id: str = Header(default=""),
    x_organization_id: str = Header(default=""),
    x_user_role: str = Header(default=""),
) -> Actor:
    """Resolve the actor from headers set by the authenticating gateway."""
    if not x_user_id or not x_organization_id:
        raise HTTPException(status_code=401, detail="Missing authenticated user")
    try:
        role = Role(x_user_role.upper())
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=f"Unknown role: {x_user_role}") from exc
    return Actor(user_id=x_user_id, organization_id=x_organization_id, role=role)


def require(capability: Capability):
    """Dependency factory: the actor, if their role grants `capability`, else 403."""

    def _check(actor: Actor = Depends(current_actor)) -> Actor:
        if not actor.can(capability):
            raise HTTPException(status_code=403, detail=f"Not permitted: {capability.value}")
        return actor

    return _check
