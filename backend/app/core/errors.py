class InitDataError(Exception):
    """Base class for everything that can go wrong while checking initData."""


class NotAuthenticated(InitDataError):
    pass


class MalformedPayload(InitDataError):
    pass


class MalformedIdentity(InitDataError):
    pass


class ConfigurationMissing(InitDataError):
    pass
