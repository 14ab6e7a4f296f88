"""Exception hierarchy shared by every deepmock component."""


class DeepMockError(Exception):
    pass


class InvalidArgumentError(DeepMockError, ValueError):
    """An argument was rejected before any work was done."""


class ConfigError(DeepMockError):
    pass


class ResolutionError(DeepMockError, ImportError):
    """
    A module could not be fetched, transformed or defined by a MockLoader.

    Subclasses ImportError so that code executed under the loader can keep
    using the usual ``try: import x / except ImportError`` idiom.
    """

    def __init__(self, message, name=None):
        super().__init__(message, name=name)


class ModuleResolutionNotFoundError(ResolutionError, ModuleNotFoundError):
    pass


class NoSourceError(ResolutionError):
    """The module exists but has no Python source to work on."""


class DuplicateDefinitionError(DeepMockError):
    """A module name was defined twice by the same loader."""


class TransformationError(DeepMockError):
    pass


class InstantiationError(DeepMockError):
    pass


class InternalError(DeepMockError):
    pass
