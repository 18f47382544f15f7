class ContentError(Exception):
    """Base class for content resolution errors.

    Attributes
    ----------
    kind : str
        Error kind label.
    message : str
        Error message.
    """

    kind = 'content'
    prefix = 'Content error'

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f'{self.prefix}: {message}')


class NotFoundError(ContentError):
    """No entry at the requested path.

    Attributes
    ----------
    path : str
        Requested logical path.
    """

    kind = 'not_found'
    prefix = 'Content not found'

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(path)


class NetworkError(ContentError):
    kind = 'network'
    prefix = 'Network error'


class RateLimitedError(ContentError):
    kind = 'rate_limited'
    prefix = 'Rate limited by remote service'


class InvalidStructureError(ContentError):
    kind = 'invalid_structure'
    prefix = 'Invalid remote structure'


class ContentIOError(ContentError):
    kind = 'io'
    prefix = 'IO error'


class CacheError(ContentError):
    kind = 'cache'
    prefix = 'Cache error'


class InvalidConfigError(ContentError):
    kind = 'invalid_config'
    prefix = 'Invalid configuration'


class SerializationError(ContentError):
    kind = 'serialization'
    prefix = 'Serialization error'
