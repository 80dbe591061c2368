"""Exception taxonomy shared by the builder, resolvers and extensions."""

from __future__ import annotations

from typing import Optional


class StyleBuildError(Exception):
    """Base class for every error raised by the build pipeline."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class SourceNotFound(StyleBuildError):
    pass


class SourceEmpty(StyleBuildError):
    pass


class TargetNotDirectory(StyleBuildError):
    pass


class EmptyOutput(StyleBuildError):
    pass


class RenderFailed(StyleBuildError):
    pass


class ProcessFailed(StyleBuildError):
    pass


class WriteFailed(StyleBuildError):
    pass


class InvalidOptionsObject(StyleBuildError):
    pass


class OptionsFileError(StyleBuildError):
    pass


class AlreadyLoaded(StyleBuildError):
    pass


class ExtensionNotFound(StyleBuildError):
    pass


class ExtensionNotCallable(StyleBuildError):
    pass


class ExtensionFailed(StyleBuildError):
    pass


class FileNotFound(StyleBuildError):
    pass


class MimeDetectionFailed(StyleBuildError):
    pass
