"""Field-path navigation over FHIR JSON.

A path is a dotted list of element names ("name.given"). Lists are
flattened at every step, so a path yields every value it reaches, in
document order. Missing elements yield nothing.
"""

from typing import Any


def walk(node: Any, path: str) -> list[Any]:
    """Collect every value reachable at path.

    Args:
        node: FHIR JSON element (usually the resource dict).
        path: Dotted element path; "" returns the node itself.

    Returns:
        List of values (never None entries).
    """
    current = [node] if node is not None else []
    if not path:
        return current

    for step in path.split("."):
        reached = []
        for item in current:
            if not isinstance(item, dict):
                continue
            value = item.get(step)
            if value is None:
                continue
            if isinstance(value, list):
                reached.extend(v for v in value if v is not None)
            else:
                reached.append(value)
        current = reached
    return current


def choice(node: Any, element: str) -> tuple[str, Any] | None:
    """Find a choice-type element ("value[x]").

    Args:
        node: FHIR JSON element.
        element: Choice element name without the type suffix ("value").

    Returns:
        (type suffix, value) such as ("Quantity", {...}), or None.
    """
    if not isinstance(node, dict):
        return None
    for key, value in node.items():
        if (
            key.startswith(element)
            and len(key) > len(element)
            and key[len(element)].isupper()
            and value is not None
        ):
            return key[len(element):], value
    return None
