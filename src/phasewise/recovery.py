class PhasewiseError(Exception):
    """Base exception for all phasewise errors."""
    pass

class RecoverableError(PhasewiseError):
    """An error that can be recovered from without data loss."""
    pass

class FatalError(PhasewiseError):
    """An error that requires application termination or major intervention."""
    pass

class NotFoundError(RecoverableError):
    """A referenced project, task, member or team does not exist."""
    pass

class ProjectNotFoundError(NotFoundError):
    pass

class TaskNotFoundError(NotFoundError):
    pass

class MemberNotFoundError(NotFoundError):
    pass

class TeamNotFoundError(NotFoundError):
    pass

class FileOperationError(RecoverableError):
    """File operation failed but can be retried."""
    pass

class MigrationNeededError(RecoverableError):
    """ Data is valid, but was written by an older schema version """
    pass

class NotificationError(RecoverableError):
    """The notification sink rejected an event. Engine state is kept as is."""
    pass

class ConfigurationError(FatalError):
    """A required collaborator or setting is missing - a setup defect."""
    pass

class CorruptionError(FatalError):
    """Corrupted Data Error - from syntax errors in data formats, to just unknown data"""
    pass

class CyclicDependencyError(FatalError):
    """Task dependencies form a cycle, so no chain ordering exists."""
    pass
