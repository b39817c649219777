from __future__ import annotations


class LayerkitError(Exception):
    pass


class CatalogLoadError(LayerkitError):
    """The module/theme catalog could not be read or validated."""


class ConfigLoadError(LayerkitError):
    """A theme or module config file could not be read or parsed."""


class ResolutionMiss(LayerkitError):
    def __init__(self, identifier: str):
        super().__init__(f"No component found for identifier: {identifier}")
        self.identifier = identifier


class ExportMismatch(LayerkitError):
    """An advice names a method its target does not export."""


class InvalidAdviceKind(LayerkitError, ValueError):
    def __init__(self, kind: str):
        super().__init__(f"Invalid advice kind: {kind}")
        self.kind = kind


class DuplicateComponentKey(LayerkitError):
    pass


class IndexArtifactMissing(LayerkitError):
    pass


class ModuleLoadError(LayerkitError):
    pass
