"""Exceptions shared by the scanner CLI and the registry snapshot loader."""


class NameScannerError(Exception):
    pass


class ConfigError(NameScannerError):
    pass


class MissingDataSourceError(NameScannerError):
    pass


class ReferenceSourceError(NameScannerError):
    pass


class CacheError(NameScannerError):
    pass


class EmptyCacheError(NameScannerError):
    pass


class InvalidDirectoryError(NameScannerError):
    pass


class InvalidNumericArgumentError(NameScannerError):
    pass
