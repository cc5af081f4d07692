"""Tag ID generation: name-based UUIDs so regenerated tags keep their identity."""

import uuid


def generate_tag_id(name: str, namespace: uuid.UUID = uuid.NAMESPACE_DNS) -> str:
    """Return the type-5 (SHA-1) RFC 4122 UUID of ``namespace`` and ``name``.

    Same inputs always give the same tag-id.
    """
    return str(uuid.uuid5(namespace, name))
