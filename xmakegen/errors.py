class XmakeError(Exception):
    pass


# A property has the wrong shape, or a value outside its closed set.
class ConfigurationTypeError(XmakeError, TypeError):
    pass


# A referenced name (toolchain, tool, platform, group, tree path) is not defined.
class MissingDefinitionError(XmakeError, LookupError):
    pass


class MissingFileError(XmakeError, FileNotFoundError):
    pass


class MacroError(XmakeError, ValueError):
    pass


class SchemaVersionError(XmakeError, ValueError):
    pass
