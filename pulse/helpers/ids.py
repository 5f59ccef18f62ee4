import uuid


def new_id() -> str:
    """Fresh entity id, usable before the row is persisted."""
    return str(uuid.uuid4())
