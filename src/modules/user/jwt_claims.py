from uuid import UUID


def extract_user_data_from_jwt(payload: dict) -> dict:
    """Extract user data from JWT claims for database sync."""
    user_metadata = payload.get("user_metadata") or {}
    app_metadata = payload.get("app_metadata") or {}

    name = (
        payload.get("name")
        or user_metadata.get("full_name")
        or user_metadata.get("name", "")
    )

    # Roles are granted by the identity provider; None means "not asserted"
    roles = app_metadata.get("roles", payload.get("roles"))

    return {
        "user_id": UUID(str(payload.get("sub", ""))),
        "email": payload.get("email", ""),
        "name": name,
        "roles": list(roles) if roles is not None else None,
    }
