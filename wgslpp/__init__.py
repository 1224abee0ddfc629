"""WGSL preprocessor: file includes, text macros and injected constants.

WGSL has no preprocessor of its own. Shader files may contain two kinds of
line-initial directives::

    //!include common/lighting.wgsl common/noise.wgsl
    //!define WORKGROUP_SIZE 64
    //!define LIGHTS

Includes are inlined recursively, define lines become macros substituted
across the whole flattened source, and a define with no replacement text is
a placeholder filled from Python with a typed ``var<private>`` declaration.
"""

from wgslpp.builder import ShaderBuilder
from wgslpp.errors import (
    BuildError, BuildStateError, CyclicInclude, DirectiveSyntaxError,
    DuplicateMacroDefinition, FormatFailure, LoadFailure, UndefinedPlaceholder,
)
from wgslpp.formatting import FormattedValue, Literal, U32, WgslValue, format_value
from wgslpp.loader import DictSourceLoader, FileSourceLoader, SourceLoader
from wgslpp.session import BuildSession, BuildState, ShaderSource, build

__version__ = "0.1.0"
