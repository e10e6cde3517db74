"""Response shape for stored user profiles."""


def serialize_user(row: dict, detailed: bool = False) -> dict:
    data = {
        "id": row["id"],
        "email": row.get("email", ""),
        "displayName": row.get("display_name", ""),
        "avatar": row.get("avatar", ""),
        "preferences": row.get("preferences") or {},
    }
    if detailed:
        data["lastLoginAt"] = row.get("last_login_at")
        data["createdAt"] = row.get("created_at")
    return data
