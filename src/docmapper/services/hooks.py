from typing import Any

from docmapper.models.enums import LifecycleEvent


def dispatch(document: Any, event: LifecycleEvent) -> bool:
    """Invoke the document's hook for ``event`` if it defines one.

    Returns:
        True if a hook ran.
    """
    hook = getattr(document, event.value, None)
    if not callable(hook):
        return False
    hook()
    return True
