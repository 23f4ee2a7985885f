from xmakegen.config import Config
from xmakegen.errors import (
    ConfigurationTypeError,
    MacroError,
    MissingDefinitionError,
    MissingFileError,
    SchemaVersionError,
    XmakeError,
)
