"""Construct-or-reuse registry for resources shared between services by name"""
from typing import Any, Callable, Dict, Generic, List, TypeVar

from ecs_efs_cdk.exceptions import UnknownSharedResourceError
from ecs_efs_cdk.logging import LOG

T = TypeVar("T")

_UNSET = object()


class SharedResourceRegistry(Generic[T]):
    """
    Memoizing resolver for resources several services reference by name.

    The first reference to a name builds the resource through its factory, later references
    get the same handle back and their factory is never called. Entries are never replaced,
    so the construction settings of the first caller win.

    One registry lives for one synthesis of a stack and is passed explicitly to the
    constructs that need it.
    """

    def __init__(self, kind: str) -> None:
        """
        Args:
            kind: Human readable resource kind, used in log messages
        """
        self._kind = kind
        self._handles: Dict[str, T] = {}
        self._settings: Dict[str, Any] = {}

    def get_or_create(self, name: str, factory: Callable[[], T], settings: Any = _UNSET) -> T:
        """
        Return the resource registered under ``name``, building it with ``factory`` on first use.

        Args:
            name: Key of the shared resource
            factory: Zero-argument callable building the resource
            settings: Optional construction settings of the caller. When a later caller
                passes settings different from the first caller's, a warning is logged
                and the existing resource is returned unchanged.

        Returns:
            The shared resource handle
        """
        if name in self._handles:
            first_settings = self._settings.get(name, _UNSET)
            if (
                settings is not _UNSET
                and first_settings is not _UNSET
                and settings != first_settings
            ):
                LOG.warning(
                    "%s %s: ignoring settings %s, already created with %s",
                    self._kind, name, settings, first_settings
                )
            LOG.debug("%s %s: reusing existing resource", self._kind, name)
            return self._handles[name]

        LOG.info("%s %s: creating", self._kind, name)
        handle = factory()
        self._handles[name] = handle
        if settings is not _UNSET:
            self._settings[name] = settings
        return handle

    def names(self) -> List[str]:
        """Registered names, in creation order"""
        return list(self._handles)

    def __getitem__(self, name: str) -> T:
        try:
            return self._handles[name]
        except KeyError:
            raise UnknownSharedResourceError(f"No {self._kind} registered as {name}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._handles

    def __len__(self) -> int:
        return len(self._handles)
