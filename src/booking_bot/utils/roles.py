CLIENT = "client"
PROVIDER = "provider"
ROLES = (CLIENT, PROVIDER)


def normalize_role(role_code: str | None) -> str | None:
    code = (role_code or "").strip().lower()
    return code if code in ROLES else None


def role_label(role_code: str | None) -> str:
    code = (role_code or "").strip().lower()
    return {
        PROVIDER: "service provider",
        CLIENT: "client",
    }.get(code, code or "—")
