def resolve_staff_identity(uid: str | None, email: str | None, raw_staff_id: str | None) -> str:
    """Stable account id, else lower-cased e-mail, else the submitted staff id."""
    if uid and uid.strip():
        return uid.strip()
    if email and email.strip():
        return email.strip().lower()
    return (raw_staff_id or "").strip()
