"""Errors raised by the reload manager."""


class HotReloadError(Exception):
    """Base class for reload manager failures."""


class NotifierError(HotReloadError):
    """Raised when a notifier fails; fatal to the whole run."""

    def __init__(self, notifier: object, cause: BaseException):
        self.notifier = notifier
        super().__init__(f"notifier failed: {cause}")


class GroupReloadError(HotReloadError):
    """Raised when a reloader of a priority group fails."""

    def __init__(self, priority: int, trigger_id: str, cause: BaseException):
        self.priority = priority
        self.trigger_id = trigger_id
        super().__init__(f"error on priority {priority} group reload: {cause}")


class ReloadProcessError(HotReloadError):
    """Raised by Manager.run when a reload cycle fails."""

    def __init__(self, trigger_id: str, cause: BaseException):
        self.trigger_id = trigger_id
        super().__init__(f"reload process failed: {cause}")
